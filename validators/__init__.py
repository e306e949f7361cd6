"""
Validators Package
==================

This package contains the Schematron validation engine:
- XPath 1.0 tests and message expressions evaluated with lxml
- Rule context resolution
- Assertion / report evaluation
- Batch validation of files and directories

Modules:
- schematronValidator.py: Validation entry points (validate, run_validation)
- xpath_expressions.py: Compiled tests, value-of and name expressions
- context_resolver.py: Rule context -> matched nodes
- assertion_evaluator.py: Checks -> findings
- validation_pipeline.py: File/directory orchestration and reports
"""

from .schematronValidator import SchematronValidator, run_validation, validate
from .validation_pipeline import ValidationPipeline, ValidationResult

__all__ = [
    'SchematronValidator',
    'ValidationPipeline',
    'ValidationResult',
    'run_validation',
    'validate',
]
