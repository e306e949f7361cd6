"""
Validation Service
==================

Orchestrates validation workflow following Single Responsibility Principle.
Only handles validation orchestration.
"""

from typing import Optional

from core.models import ValidationReport
from core.settings import KIND_CHECK_ERROR, KIND_FATAL, KIND_RULE_ERROR
from managers.file_manager import FileManager
from validators.schematronValidator import run_validation


class ValidationService:
    """
    Service responsible for orchestrating validation process.

    Follows SRP: Only handles validation logic.
    """

    def __init__(self, first_match: bool = False, file_manager: Optional[FileManager] = None):
        """
        Initialize validation service.

        Args:
            first_match: Apply first-matching-rule selection within patterns
            file_manager: File access helper (dependency injection)
        """
        self.first_match = first_match
        self.file_manager = file_manager or FileManager()

    def validate_text(
        self,
        rules_text: str,
        xml_text: str,
        phase: Optional[str] = None
    ) -> ValidationReport:
        """
        Validate an XML document held in memory.

        Args:
            rules_text: Schematron rules document
            xml_text: XML content to validate
            phase: Phase to run (default phase when None)

        Returns:
            ValidationReport with ordered findings
        """
        return run_validation(rules_text, xml_text, phase=phase, first_match=self.first_match)

    def validate_files(
        self,
        rules_path: str,
        xml_path: str,
        phase: Optional[str] = None
    ) -> ValidationReport:
        """
        Validate an XML file against a Schematron file.

        Args:
            rules_path: Path to Schematron rules
            xml_path: Path to XML document
            phase: Phase to run (default phase when None)

        Returns:
            ValidationReport with ordered findings
        """
        rules_text = self.file_manager.read_text(rules_path)
        xml_text = self.file_manager.read_text(xml_path)
        return self.validate_text(rules_text, xml_text, phase)

    def is_valid(self, report: ValidationReport) -> bool:
        """
        Check if a report contains no error findings.

        Args:
            report: Result from validate_text() or validate_files()

        Returns:
            True if the document passed
        """
        return report.is_valid()

    def get_error_summary(self, report: ValidationReport) -> str:
        """
        Get human-readable error summary.

        Args:
            report: Result from validate_text() or validate_files()

        Returns:
            Error summary string
        """
        if self.is_valid(report):
            return "No errors"

        fatal = [f for f in report.errors if f.kind == KIND_FATAL]
        if fatal:
            return f"Fatal: {fatal[0].message}"

        failed = sum(1 for f in report.errors if f.kind not in (KIND_RULE_ERROR, KIND_CHECK_ERROR))
        rule_errors = sum(1 for f in report.errors if f.kind == KIND_RULE_ERROR)
        check_errors = sum(1 for f in report.errors if f.kind == KIND_CHECK_ERROR)

        parts = []
        if failed:
            parts.append(f"Assertions: {failed} errors")
        if rule_errors:
            parts.append(f"Rules: {rule_errors} invalid contexts")
        if check_errors:
            parts.append(f"Checks: {check_errors} invalid tests")
        return "; ".join(parts)
