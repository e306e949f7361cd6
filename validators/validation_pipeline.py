"""
validation_pipeline.py

Validates XML files against one Schematron rules file and reports the results.

The rules file is parsed once; every XML file is then loaded and validated
independently. If the rules themselves are broken, every file reports the
same fatal finding.

Usage:
    # Validate single file
    python -m validators.validation_pipeline rules.sch samples/book.xml

    # Validate directory
    python -m validators.validation_pipeline rules.sch samples/

    # Generate report
    python -m validators.validation_pipeline rules.sch samples/ --report validation_report.md
"""

import sys
from pathlib import Path
from typing import Dict, List, Optional

from core.errors import ParseError
from core.models import Finding, ValidationReport
from core.settings import KIND_FATAL, SEVERITY_ERROR, XML_FILE_PATTERN
from managers.file_manager import FileManager
from validators.schematronValidator import SchematronValidator


class ValidationResult:
    """Holds validation results for a single file."""

    def __init__(self, file_path: str, report: Optional[ValidationReport] = None):
        self.file_path = file_path
        self.report = report or ValidationReport()

    @property
    def findings(self) -> List[Finding]:
        return self.report.findings

    @property
    def errors(self) -> List[Finding]:
        return self.report.errors

    def is_valid(self) -> bool:
        """Returns True if the file produced no error findings."""
        return self.report.is_valid()

    def total_errors(self) -> int:
        """Returns count of error findings."""
        return len(self.errors)


class ValidationPipeline:
    """Validates XML files against a Schematron rules file."""

    def __init__(
        self,
        schematron_file: str,
        phase: Optional[str] = None,
        first_match: bool = False,
        file_manager: Optional[FileManager] = None,
    ):
        """
        Initialize validation pipeline.

        Args:
            schematron_file: Path to Schematron rules
            phase: Phase to run (default phase when None)
            first_match: Apply first-matching-rule selection within patterns
            file_manager: File access helper (dependency injection)
        """
        self.schematron_file = schematron_file
        self.phase = phase
        self.file_manager = file_manager or FileManager()
        self.results: Dict[str, ValidationResult] = {}

        self.validator: Optional[SchematronValidator] = None
        self.rules_error: Optional[Finding] = None
        try:
            rules_text = self.file_manager.read_text(schematron_file)
            self.validator = SchematronValidator.from_text(rules_text, first_match=first_match)
        except (OSError, ParseError) as e:
            self.rules_error = Finding(
                severity=SEVERITY_ERROR,
                message=f"Cannot load Schematron rules {schematron_file}: {e}",
                kind=KIND_FATAL,
            )

    def validate_file(self, xml_file: str) -> ValidationResult:
        """
        Validate a single file.

        Args:
            xml_file: Path to XML file

        Returns:
            ValidationResult object
        """
        if self.validator is None:
            return ValidationResult(xml_file, ValidationReport(findings=[self.rules_error]))

        try:
            xml_text = self.file_manager.read_text(xml_file)
        except (OSError, UnicodeDecodeError) as e:
            failure = Finding(
                severity=SEVERITY_ERROR,
                message=f"Cannot read {xml_file}: {e}",
                kind=KIND_FATAL,
            )
            return ValidationResult(xml_file, ValidationReport(findings=[failure]))

        report = self.validator.validate_text(xml_text, self.phase)
        return ValidationResult(xml_file, report)

    def validate_directory(self, directory: str) -> Dict[str, ValidationResult]:
        """
        Validate all XML files in directory.

        Args:
            directory: Path to directory containing XML files (or a single file)

        Returns:
            Dictionary mapping file paths to ValidationResult objects
        """
        if Path(directory).is_file():
            xml_files = [directory]
        else:
            xml_files = self.file_manager.list_files(directory, XML_FILE_PATTERN)

        for xml_file in xml_files:
            self.results[str(xml_file)] = self.validate_file(str(xml_file))

        return self.results

    def all_passed(self) -> bool:
        return all(r.is_valid() for r in self.results.values())

    def generate_report(self, output_file: Optional[str] = None) -> str:
        """
        Generate validation report.

        Args:
            output_file: Path to output markdown file (not written if None)

        Returns:
            Report text
        """
        report_lines = []
        report_lines.append("# Schematron Validation Report")
        report_lines.append("")
        report_lines.append(f"**Rules:** {self.schematron_file}")
        if self.phase:
            report_lines.append(f"**Phase:** {self.phase}")
        report_lines.append(f"**Total files validated:** {len(self.results)}")

        passed = sum(1 for r in self.results.values() if r.is_valid())
        failed = len(self.results) - passed

        report_lines.append(f"**✅ Passed:** {passed}")
        report_lines.append(f"**❌ Failed:** {failed}")
        report_lines.append("")

        # Per-file results
        report_lines.append("## Per-file Results")
        report_lines.append("")

        for file_path, result in sorted(self.results.items()):
            file_name = Path(file_path).name
            status = (
                "✅ PASS"
                if result.is_valid()
                else f"❌ FAIL ({result.total_errors()} errors)"
            )

            report_lines.append(f"### {file_name} — {status}")
            report_lines.append("")

            if not result.is_valid():
                for err in result.errors:
                    where = f"{err.location}: " if err.location else ""
                    report_lines.append(f"- {where}{err.message}")
                report_lines.append("")

        report_text = "\n".join(report_lines)

        if output_file:
            self.file_manager.write_text(output_file, report_text)

        return report_text


def main():
    """Main entry point."""
    if len(sys.argv) < 3:
        print(
            "Usage: python -m validators.validation_pipeline <rules.sch> <xml_file_or_directory> [--phase ID] [--report output.md]"
        )
        sys.exit(2)

    schematron_file, target = sys.argv[1], sys.argv[2]

    phase = None
    if "--phase" in sys.argv:
        phase_idx = sys.argv.index("--phase")
        if phase_idx + 1 < len(sys.argv):
            phase = sys.argv[phase_idx + 1]

    report_file = None
    if "--report" in sys.argv:
        report_idx = sys.argv.index("--report")
        if report_idx + 1 < len(sys.argv):
            report_file = sys.argv[report_idx + 1]

    pipeline = ValidationPipeline(schematron_file, phase=phase)
    pipeline.validate_directory(target)

    report_text = pipeline.generate_report(report_file)
    if report_file:
        print(f"\n📄 Report saved to: {report_file}")
    else:
        print("\n" + "=" * 80)
        print(report_text)
        print("=" * 80)

    sys.exit(0 if pipeline.all_passed() else 1)


if __name__ == "__main__":
    main()
