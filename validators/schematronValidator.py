"""
Schematron validation engine.

Runs the pipeline Schema Parser -> Document Loader -> Context Resolver ->
Assertion Evaluator and returns findings in pattern -> rule -> node -> check
order. Structural failures of either input are fatal and become the only
finding; a broken rule context or check is reported inline and the run
continues.

Each call parses its own trees and compiles its own XPath objects, so
nothing mutable is shared between calls.
"""

import logging
import os
import sys
from typing import List, Optional, Union

from core.document_loader import SubjectDocument, load_document
from core.errors import (
    InvalidContextExpression,
    MalformedXml,
    ParseError,
    SchematronError,
    UnknownPhase,
)
from core.models import (
    Finding,
    Location,
    FiredRule,
    RuleDocument,
    ValidationReport,
)
from core.nodes import node_key
from core.schema_parser import parse_rules
from core.settings import (
    KIND_FATAL,
    KIND_PASSED,
    KIND_RULE_ERROR,
    SEVERITY_ERROR,
    SEVERITY_SUCCESS,
    SUCCESS_MESSAGE,
)
from validators.assertion_evaluator import AssertionEvaluator
from validators.context_resolver import resolve

logger = logging.getLogger(__name__)

Source = Union[str, bytes]


def _fatal_finding(error: SchematronError) -> Finding:
    location = None
    if isinstance(error, MalformedXml):
        location = Location(error.line, error.column)
    rule_context = getattr(error, "rule_context", None)
    return Finding(
        severity=SEVERITY_ERROR,
        message=str(error),
        kind=KIND_FATAL,
        location=location,
        rule_context=rule_context,
    )


class SchematronValidator:
    """
    Validates XML documents against one Schematron rules document.

    The rules are parsed once; validate_document may then be called for any
    number of subject documents.
    """

    def __init__(self, rule_document: RuleDocument, first_match: bool = False):
        """
        Initialize validator.

        Args:
            rule_document: Parsed Schematron rules
            first_match: Within a pattern, let only the first matching rule
                handle a node (ISO Schematron rule selection)
        """
        self.rule_document = rule_document
        self.first_match = first_match
        self.namespaces = rule_document.namespace_map()

    @classmethod
    def from_text(cls, schematron_text: Source, first_match: bool = False) -> "SchematronValidator":
        return cls(parse_rules(schematron_text), first_match=first_match)

    def validate_document(
        self, document: SubjectDocument, phase: Optional[str] = None
    ) -> ValidationReport:
        """
        Run every active pattern against a loaded document.

        Args:
            document: Subject document from the document loader
            phase: Phase to run (default phase, or all patterns, when None)

        Returns:
            ValidationReport with ordered findings and fired rules

        Raises:
            UnknownPhase: Requested phase is not declared
        """
        patterns = self.rule_document.patterns_for_phase(phase)
        if patterns is None:
            raise UnknownPhase(phase or self.rule_document.default_phase)

        report = ValidationReport(rule_document=self.rule_document, phase=phase)
        evaluator = AssertionEvaluator(self.namespaces)

        for pattern in patterns:
            handled = set()
            for rule in pattern.rules:
                try:
                    nodes = resolve(rule, document, self.namespaces)
                except InvalidContextExpression as e:
                    logger.debug("Skipping rule: %s", e)
                    report.findings.append(
                        Finding(
                            severity=SEVERITY_ERROR,
                            message=str(e),
                            kind=KIND_RULE_ERROR,
                            rule_context=rule.context,
                            pattern_id=pattern.id,
                        )
                    )
                    continue

                if self.first_match:
                    nodes = [n for n in nodes if node_key(n) not in handled]
                    handled.update(node_key(n) for n in nodes)
                if not nodes:
                    continue

                report.fired_rules.append(FiredRule(pattern, rule, tuple(nodes)))
                report.findings.extend(
                    evaluator.evaluate_rule(rule, nodes, document, pattern.id)
                )

        if not report.errors:
            report.findings.append(
                Finding(severity=SEVERITY_SUCCESS, message=SUCCESS_MESSAGE, kind=KIND_PASSED)
            )
        return report

    def validate_text(self, xml_text: Source, phase: Optional[str] = None) -> ValidationReport:
        try:
            document = load_document(xml_text)
            return self.validate_document(document, phase)
        except (ParseError, UnknownPhase) as e:
            return ValidationReport(
                findings=[_fatal_finding(e)], rule_document=self.rule_document, phase=phase
            )


def run_validation(
    schematron_text: Source,
    xml_text: Source,
    phase: Optional[str] = None,
    first_match: bool = False,
) -> ValidationReport:
    """
    Validate an XML document against Schematron rules, keeping the trace.

    Args:
        schematron_text: Schematron rules document
        xml_text: Subject XML document
        phase: Phase to run (None: default phase or all patterns)
        first_match: Apply first-matching-rule selection within patterns

    Returns:
        ValidationReport
    """
    try:
        validator = SchematronValidator.from_text(schematron_text, first_match=first_match)
    except ParseError as e:
        logger.debug("Rules rejected: %s", e)
        return ValidationReport(findings=[_fatal_finding(e)], phase=phase)
    return validator.validate_text(xml_text, phase)


def validate(
    schematron_text: Source,
    xml_text: Source,
    phase: Optional[str] = None,
    first_match: bool = False,
) -> List[Finding]:
    """
    Validate an XML document against Schematron rules.

    Args:
        schematron_text: Schematron rules document
        xml_text: Subject XML document
        phase: Phase to run (None: default phase or all patterns)
        first_match: Apply first-matching-rule selection within patterns

    Returns:
        Ordered findings; a single success finding when nothing failed
    """
    return run_validation(schematron_text, xml_text, phase, first_match).findings


def validate_file(sch_path: str, xml_path: str, phase: Optional[str] = None) -> int:
    """Validate a single XML file against the Schematron at sch_path."""
    if not os.path.exists(sch_path):
        print(f"Schematron file not found: {sch_path}")
        return 1
    if not os.path.exists(xml_path):
        print(f"XML file not found: {xml_path}")
        return 1

    with open(sch_path, "rb") as f:
        rules = f.read()
    with open(xml_path, "rb") as f:
        document = f.read()

    report = run_validation(rules, document, phase=phase)
    fname = os.path.basename(xml_path)
    if report.is_valid():
        print(f"[PASS] {fname}: Schematron PASSED")
        print("-" * 80)
        return 0

    print(f"[FAIL] {fname}: Schematron FAILED")
    for finding in report.errors:
        where = str(finding.location) if finding.location else (finding.xpath or "-")
        print(f"  - {where}: {finding.message}")
    print("-" * 80)
    return 2


if __name__ == "__main__":
    # CLI: python -m validators.schematronValidator <schematron_file> <xml_file> [phase]
    args = sys.argv[1:]
    if len(args) < 2:
        print("Usage: python -m validators.schematronValidator <rules.sch> <document.xml> [phase]")
        sys.exit(1)
    sys.exit(validate_file(args[0], args[1], args[2] if len(args) > 2 else None))
