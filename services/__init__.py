"""
Services Package
================

Business logic layer for the Schematron validator.

Services:
- ValidationService: Validation workflow
- ExportService: JSON / JSONL / SVRL export
"""

from .validation_service import ValidationService
from .export_service import ExportService

__all__ = [
    'ValidationService',
    'ExportService',
]
