"""
Export Service
==============

Handles all export operations following Single Responsibility Principle.
Only handles rendering findings to export formats and writing them.
"""

import json
from typing import List

from lxml import etree

from core.models import Finding, ValidationReport
from core.settings import (
    KIND_FAILED_ASSERT,
    KIND_SUCCESSFUL_REPORT,
    OUTPUT_FORMATS,
    SVRL_NS,
)
from managers.file_manager import FileManager

SVRL = "{%s}" % SVRL_NS


class ExportService:
    """
    Service responsible for exporting validation findings.

    Follows SRP: Only handles export operations.
    """

    def __init__(self, file_manager: FileManager = None):
        """Initialize export service."""
        self.file_manager = file_manager or FileManager()

    def findings_to_json(self, findings: List[Finding], details: bool = False) -> str:
        """
        Render findings as a JSON array.

        Args:
            findings: Findings to export
            details: Include rule context, test and node path

        Returns:
            JSON text
        """
        records = [f.to_dict(details=details) for f in findings]
        return json.dumps(records, ensure_ascii=False, indent=2)

    def findings_to_jsonl(self, findings: List[Finding], details: bool = True) -> str:
        """
        Render findings as JSON Lines, one record per finding.

        Args:
            findings: Findings to export
            details: Include rule context, test and node path

        Returns:
            JSONL text
        """
        lines = [json.dumps(f.to_dict(details=details), ensure_ascii=False) for f in findings]
        return "\n".join(lines) + ("\n" if lines else "")

    def report_to_svrl(self, report: ValidationReport) -> str:
        """
        Render a report as SVRL (Schematron Validation Report Language).

        Args:
            report: Validation report with fired-rule trace

        Returns:
            SVRL XML text
        """
        root = etree.Element(SVRL + "schematron-output", nsmap={"svrl": SVRL_NS})
        rules = report.rule_document
        if rules is not None:
            if rules.title:
                root.set("title", rules.title)
            for binding in rules.namespaces:
                ns_el = etree.SubElement(root, SVRL + "ns-prefix-in-attribute-values")
                ns_el.set("prefix", binding.prefix)
                ns_el.set("uri", binding.uri)
        if report.phase:
            root.set("phase", report.phase)

        owner = {}
        for index, fired in enumerate(report.fired_rules):
            for check in fired.rule.checks:
                owner[id(check)] = index

        by_rule = {index: [] for index in range(len(report.fired_rules))}
        for finding in report.findings:
            if finding.kind in (KIND_FAILED_ASSERT, KIND_SUCCESSFUL_REPORT):
                by_rule[owner[id(finding.check)]].append(finding)
            elif finding.is_error:
                # Engine diagnostics have no SVRL element of their own
                root.append(etree.Comment(" " + finding.message.replace("--", "- -") + " "))

        current_pattern = None
        for index, fired in enumerate(report.fired_rules):
            if fired.pattern is not current_pattern:
                current_pattern = fired.pattern
                pattern_el = etree.SubElement(root, SVRL + "active-pattern")
                if fired.pattern.id:
                    pattern_el.set("id", fired.pattern.id)
                if fired.pattern.title:
                    pattern_el.set("name", fired.pattern.title)
            rule_el = etree.SubElement(root, SVRL + "fired-rule")
            rule_el.set("context", fired.rule.context)
            if fired.rule.id:
                rule_el.set("id", fired.rule.id)
            for finding in by_rule[index]:
                root.append(self._svrl_result(finding))

        return etree.tostring(root, encoding="unicode", pretty_print=True)

    def _svrl_result(self, finding: Finding):
        element = etree.Element(SVRL + finding.kind)
        element.set("test", finding.check.test)
        element.set("location", finding.xpath or "")
        if finding.check.id:
            element.set("id", finding.check.id)
        if finding.check.role:
            element.set("role", finding.check.role)
        etree.SubElement(element, SVRL + "text").text = finding.message
        return element

    def render(self, report: ValidationReport, output_format: str = "json", details: bool = False) -> str:
        """
        Render a report in one of the export formats.

        Args:
            report: Validation report
            output_format: 'json', 'jsonl' or 'svrl'
            details: Include rule context, test and node path (JSON only)

        Returns:
            Rendered text
        """
        if output_format == "json":
            return self.findings_to_json(report.findings, details=details)
        if output_format == "jsonl":
            return self.findings_to_jsonl(report.findings)
        if output_format == "svrl":
            return self.report_to_svrl(report)
        raise ValueError(
            f"Unsupported export format '{output_format}' (expected one of {OUTPUT_FORMATS[1:]})"
        )

    def export_report(
        self,
        report: ValidationReport,
        filepath: str,
        output_format: str = "json",
        details: bool = False
    ) -> str:
        """
        Export a report to file.

        Args:
            report: Validation report
            filepath: Destination path
            output_format: 'json', 'jsonl' or 'svrl'
            details: Include rule context, test and node path (JSON only)

        Returns:
            Path to exported file
        """
        content = self.render(report, output_format, details)
        return self.file_manager.write_text(filepath, content)
