"""
Assertion Evaluator
===================

Runs the checks of a rule against its matched nodes.

Enumeration order is matched nodes (document order) then checks (document
order). An assert produces a finding when its test is false, a report when
its test is true. A check that cannot be compiled or evaluated produces one
check-error finding and is skipped for the remaining nodes.
"""

import logging
from typing import Dict, List, Optional

from core.document_loader import SubjectDocument
from core.errors import ExpressionError, ExpressionEvaluationError, ExpressionSyntaxError
from core.models import (
    Check,
    Finding,
    MessageText,
    NameOf,
    Rule,
    ValueOf,
    normalize_space,
)
from core.nodes import node_name, node_path
from core.settings import (
    KIND_CHECK_ERROR,
    KIND_FAILED_ASSERT,
    KIND_SUCCESSFUL_REPORT,
    SEVERITY_ERROR,
)
from validators.xpath_expressions import BooleanExpression, NameExpression, StringExpression

logger = logging.getLogger(__name__)


class CompiledCheck:
    """A check with its test and message expressions compiled once."""

    def __init__(self, rule: Rule, check: Check, namespaces: Dict[str, str]):
        self.rule = rule
        self.check = check
        self.error: Optional[ExpressionError] = None
        self.reported = False
        self.test = None
        self.message_parts = []
        try:
            self.test = BooleanExpression(check.test, namespaces)
            for part in check.message.parts:
                if isinstance(part, ValueOf):
                    self.message_parts.append((part, StringExpression(part.select, namespaces)))
                elif isinstance(part, NameOf) and part.path:
                    self.message_parts.append((part, NameExpression(part.path, namespaces)))
                else:
                    self.message_parts.append((part, None))
        except ExpressionSyntaxError as e:
            self.error = ExpressionError(rule, check, str(e))

    def fires(self, node) -> bool:
        outcome = self.test.evaluate(node)
        return not outcome if self.check.is_assert else outcome

    def render_message(self, node) -> str:
        pieces = []
        for part, compiled in self.message_parts:
            if isinstance(part, MessageText):
                pieces.append(part.text)
            elif compiled is not None:
                pieces.append(compiled.evaluate(node))
            else:
                pieces.append(node_name(node))

        message = normalize_space("".join(pieces))
        if message:
            return message
        if self.check.is_assert:
            return f"Assertion failed (test: {self.check.test})"
        return f"Report fired (test: {self.check.test})"


class AssertionEvaluator:
    """Evaluates rules for one validation run."""

    def __init__(self, namespaces: Dict[str, str]):
        self.namespaces = namespaces

    def evaluate_rule(
        self,
        rule: Rule,
        nodes: List,
        document: SubjectDocument,
        pattern_id: Optional[str] = None,
    ) -> List[Finding]:
        """
        Evaluate every check of a rule on every matched node.

        Args:
            rule: Rule to evaluate
            nodes: Nodes matched by the rule context, in document order
            document: Document the nodes belong to (source locations)
            pattern_id: Id of the enclosing pattern, carried into findings

        Returns:
            Findings in (node, check) enumeration order
        """
        compiled = [CompiledCheck(rule, check, self.namespaces) for check in rule.checks]
        findings: List[Finding] = []

        for node in nodes:
            for item in compiled:
                if item.error is None:
                    try:
                        if item.fires(node):
                            findings.append(
                                self._finding(item, node, document, pattern_id)
                            )
                        continue
                    except ExpressionEvaluationError as e:
                        item.error = ExpressionError(rule, item.check, str(e))

                if not item.reported:
                    item.reported = True
                    logger.debug("Skipping check: %s", item.error)
                    findings.append(self._check_error(item, node, document, pattern_id))

        return findings

    def _finding(
        self, item: CompiledCheck, node, document: SubjectDocument, pattern_id: Optional[str]
    ) -> Finding:
        kind = KIND_FAILED_ASSERT if item.check.is_assert else KIND_SUCCESSFUL_REPORT
        return Finding(
            severity=SEVERITY_ERROR,
            message=item.render_message(node),
            kind=kind,
            location=document.location_of(node),
            rule_context=item.rule.context,
            check=item.check,
            xpath=node_path(node),
            pattern_id=pattern_id,
        )

    def _check_error(
        self, item: CompiledCheck, node, document: SubjectDocument, pattern_id: Optional[str]
    ) -> Finding:
        return Finding(
            severity=SEVERITY_ERROR,
            message=str(item.error),
            kind=KIND_CHECK_ERROR,
            location=document.location_of(node),
            rule_context=item.rule.context,
            check=item.check,
            xpath=node_path(node),
            pattern_id=pattern_id,
        )


def evaluate_rule(
    rule: Rule,
    nodes: List,
    document: SubjectDocument,
    namespaces: Dict[str, str],
    pattern_id: Optional[str] = None,
) -> List[Finding]:
    """Evaluate one rule's checks against its matched nodes."""
    return AssertionEvaluator(namespaces).evaluate_rule(rule, nodes, document, pattern_id)
