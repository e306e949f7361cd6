"""
Command Parser
==============

Handles CLI argument parsing.
Follows SRP: Only handles command-line argument parsing.
"""

import argparse
import os
from typing import Any

from core.settings import OUTPUT_FORMATS


class CommandParser:
    """
    Parser for command-line arguments.

    Follows SRP: Only handles argument parsing.
    """

    def __init__(self):
        """Initialize command parser."""
        self.parser = self._create_parser()
        self.last_error = None

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all options.

        Returns:
            Configured ArgumentParser
        """
        parser = argparse.ArgumentParser(
            description="Schematron Validator",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Validate one document
  python Schematron_CLI.py rules.sch book.xml

  # Validate every .xml file in a directory and write a Markdown report
  python Schematron_CLI.py rules.sch samples/ --report validation_report.md

  # Run one phase and print findings as JSON
  python Schematron_CLI.py rules.sch book.xml --phase required --format json

  # Write an SVRL report
  python Schematron_CLI.py rules.sch book.xml --format svrl --output book.svrl
            """
        )

        parser.add_argument(
            "rules",
            help="Schematron rules file"
        )

        parser.add_argument(
            "target",
            help="XML file or directory of .xml files to validate"
        )

        # Validation options
        parser.add_argument(
            "--phase",
            help="Phase to run (default: the schema's defaultPhase, or all patterns)"
        )

        parser.add_argument(
            "--first-match",
            action="store_true",
            help="Within a pattern, only the first rule matching a node handles it"
        )

        # Output options
        parser.add_argument(
            "--format",
            choices=OUTPUT_FORMATS,
            default="text",
            help="Output format (default: text)"
        )

        parser.add_argument(
            "--details",
            action="store_true",
            help="Include rule context, test and node path in JSON output"
        )

        parser.add_argument(
            "--output",
            help="Write formatted findings to this file instead of stdout"
        )

        parser.add_argument(
            "--report",
            help="Write a Markdown summary report to this file"
        )

        parser.add_argument(
            "--verbose",
            action="store_true",
            help="Enable debug logging"
        )

        return parser

    def parse_args(self, args=None) -> Any:
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (default: sys.argv)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def validate_args(self, args: Any) -> bool:
        """
        Validate parsed arguments.

        Args:
            args: Parsed arguments namespace

        Returns:
            True if arguments are valid; otherwise last_error holds the reason
        """
        if not os.path.isfile(args.rules):
            self.last_error = f"Schematron file not found: {args.rules}"
            return False

        if not os.path.exists(args.target):
            self.last_error = f"XML file or directory not found: {args.target}"
            return False

        if args.format != "text" and os.path.isdir(args.target):
            self.last_error = f"--format {args.format} requires a single XML file"
            return False

        return True
