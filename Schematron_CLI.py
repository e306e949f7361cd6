#!/usr/bin/env python3
"""
Schematron Validator - CLI Entry Point
======================================

Command-line interface over the validation engine.
This file is intentionally minimal, delegating all logic to specialized services.

Architecture:
- Core: Rule/document parsing and the data model
- Validators: Context resolution, assertion evaluation, batch pipeline
- Services: Validation and export orchestration
- Managers: File operations
- CLI: User interface (parsing, formatting)

Usage:
    python Schematron_CLI.py rules.sch book.xml
    python Schematron_CLI.py rules.sch samples/ --report validation_report.md
    python Schematron_CLI.py rules.sch book.xml --format svrl --output book.svrl
"""

import logging
import os
import sys

# Service layer
from services import ExportService

# Validation layer
from validators import ValidationPipeline

# CLI layer
from cli import CommandParser, OutputFormatter

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_USAGE = 2


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def run_text_output(pipeline: ValidationPipeline, target: str) -> None:
    """
    Validate target and print findings per file.

    Args:
        pipeline: Configured validation pipeline
        target: XML file or directory
    """
    formatter = OutputFormatter()
    formatter.print_header(f"Schematron validation: {pipeline.schematron_file}")

    results = pipeline.validate_directory(target)
    if not results:
        formatter.print_warning(f"No .xml files found in {target}")

    for file_path, result in results.items():
        formatter.print_file_result(os.path.basename(file_path), result)

    failed = sum(1 for r in results.values() if not r.is_valid())
    formatter.print_validation_summary(len(results), failed)


def run_export_output(pipeline: ValidationPipeline, args) -> None:
    """
    Validate a single file and emit findings in a machine-readable format.

    Args:
        pipeline: Configured validation pipeline
        args: Parsed arguments (target, format, details, output)
    """
    export_service = ExportService(pipeline.file_manager)
    result = pipeline.validate_file(args.target)
    pipeline.results[args.target] = result

    if args.output:
        export_service.export_report(result.report, args.output, args.format, args.details)
    else:
        print(export_service.render(result.report, args.format, args.details))


def main(argv=None) -> int:
    """Main entry point for CLI."""
    # Parse arguments
    parser = CommandParser()
    args = parser.parse_args(argv)
    formatter = OutputFormatter()
    configure_logging(args.verbose)

    # Validate arguments
    if not parser.validate_args(args):
        formatter.print_error(parser.last_error)
        return EXIT_USAGE

    # Execute command
    try:
        pipeline = ValidationPipeline(
            args.rules,
            phase=args.phase,
            first_match=args.first_match,
        )

        if args.format == "text":
            run_text_output(pipeline, args.target)
            if args.output:
                formatter.print_warning("--output is ignored for text output; use --report")
        else:
            run_export_output(pipeline, args)

        if args.report:
            pipeline.generate_report(args.report)
            if args.format == "text":
                formatter.print_success(f"Report saved to: {args.report}")

        return EXIT_OK if pipeline.all_passed() else EXIT_INVALID
    except KeyboardInterrupt:
        formatter.print_warning("Operation cancelled by user")
        return 130
    except OSError as e:
        formatter.print_error(str(e))
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
