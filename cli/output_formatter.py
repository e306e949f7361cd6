"""
Output Formatter
================

Handles console output formatting.
Follows SRP: Only handles output formatting.
"""

import sys

from core.models import Finding


class OutputFormatter:
    """
    Formatter for console output.

    Follows SRP: Only handles output formatting.
    """

    def print_header(self, title: str) -> None:
        """
        Print formatted header.

        Args:
            title: Header title
        """
        print("\n" + "=" * 80)
        print(f" {title}")
        print("=" * 80)

    def format_finding(self, finding: Finding) -> str:
        """
        Format a single finding as one console line.

        Args:
            finding: Finding to format

        Returns:
            Formatted line
        """
        marker = "✓" if not finding.is_error else "✗"
        where = f" [{finding.location}]" if finding.location is not None else ""
        return f"  {marker} {finding.message}{where}"

    def print_file_result(self, file_name: str, result) -> None:
        """
        Print the outcome and findings of one validated file.

        Args:
            file_name: Display name of the file
            result: ValidationResult of the file
        """
        if result.is_valid():
            print(f"[PASS] {file_name}")
        else:
            print(f"[FAIL] {file_name} ({result.total_errors()} errors)")
        for finding in result.findings:
            print(self.format_finding(finding))
        print("-" * 80)

    def print_validation_summary(self, total: int, failed: int) -> None:
        """
        Print validation summary.

        Args:
            total: Number of files validated
            failed: Number of files with errors
        """
        print()
        print("Summary:")
        print(f"  Total files checked: {total}")
        print(f"  Passed: {total - failed}")
        print(f"  Failed: {failed}")
        print("=" * 80)

    def print_error(self, message: str) -> None:
        """
        Print error message.

        Args:
            message: Error message
        """
        print(f"ERROR: {message}", file=sys.stderr)

    def print_warning(self, message: str) -> None:
        """
        Print warning message.

        Args:
            message: Warning message
        """
        print(f"WARNING: {message}", file=sys.stderr)

    def print_success(self, message: str) -> None:
        """
        Print success message.

        Args:
            message: Success message
        """
        print(f"✓ {message}")
