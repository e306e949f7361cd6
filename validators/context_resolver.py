"""
Context Resolver
================

Finds the nodes a rule applies to.

Relative contexts follow Schematron match semantics: 'book' matches every
book element in the document, not only a document element named book. Each
relative branch of a context is anchored with '//' before it is compiled;
absolute branches ('/', '/a/b', '//a') and parenthesized or function-call
branches are evaluated as written.
"""

import logging
import re
from typing import Dict, List

from lxml import etree

from core.document_loader import SubjectDocument
from core.errors import (
    ExpressionEvaluationError,
    ExpressionSyntaxError,
    InvalidContextExpression,
)
from core.models import Rule
from validators.xpath_expressions import compile_xpath, run_xpath

logger = logging.getLogger(__name__)

_FUNCTION_CALL = re.compile(r"^([A-Za-z_][\w.\-]*(?::[A-Za-z_][\w.\-]*)?)\s*\(")
_NODE_TESTS = {"node", "text", "comment", "processing-instruction"}


def _split_union(context: str) -> List[str]:
    """Split on top-level '|' (outside literals, brackets and parentheses)."""
    parts = []
    depth = 0
    quote = None
    start = 0
    for i, ch in enumerate(context):
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch in "([":
            depth += 1
        elif ch in ")]":
            depth -= 1
        elif ch == "|" and depth == 0:
            parts.append(context[start:i].strip())
            start = i + 1
    parts.append(context[start:].strip())
    return parts


def _is_relative_path(part: str) -> bool:
    if part.startswith(("/", "(", "$", "'", '"')) or part[:1].isdigit():
        return False
    call = _FUNCTION_CALL.match(part)
    return call is None or call.group(1) in _NODE_TESTS


def anchor_context(context: str) -> str:
    """'book | /lib/shelf' -> '//book | /lib/shelf'"""
    parts = _split_union(context)
    return " | ".join(f"//{p}" if p and _is_relative_path(p) else p for p in parts)


class CompiledContext:
    """A rule context compiled as a document-anchored node selector."""

    def __init__(self, rule: Rule, namespaces: Dict[str, str]):
        self.rule = rule
        self.anchored = anchor_context(rule.context)
        try:
            compile_xpath(rule.context, namespaces)
            self.select = compile_xpath(self.anchored, namespaces, shown=rule.context)
            # lxml leaves the document node out of node-set results
            self.selects_document = compile_xpath(
                f"count(({self.anchored}) | /) = count({self.anchored})",
                namespaces,
                shown=rule.context,
            )
        except ExpressionSyntaxError as e:
            raise InvalidContextExpression(rule, str(e)) from e

    def resolve(self, document: SubjectDocument) -> List:
        try:
            selected = run_xpath(self.select, document.root, self.rule.context)
            if not isinstance(selected, list):
                raise InvalidContextExpression(self.rule, "context must be a location path")
            nodes = []
            if run_xpath(self.selects_document, document.root, self.rule.context):
                nodes.append(document.tree)
        except ExpressionEvaluationError as e:
            raise InvalidContextExpression(self.rule, str(e)) from e

        for item in selected:
            if isinstance(item, etree._Element) and isinstance(item.tag, str):
                nodes.append(item)
            elif isinstance(item, etree._ElementUnicodeResult):
                nodes.append(item)
        return nodes


def compile_context(rule: Rule, namespaces: Dict[str, str]) -> CompiledContext:
    """
    Compile a rule context into a document-anchored selector.

    Raises:
        InvalidContextExpression: Context does not compile
    """
    return CompiledContext(rule, namespaces)


def resolve(rule: Rule, document: SubjectDocument, namespaces: Dict[str, str]) -> List:
    """
    Resolve a rule's context against a document.

    Args:
        rule: Rule whose context is resolved
        document: Loaded subject document
        namespaces: Prefix bindings of the rule document

    Returns:
        Matched nodes in document order (empty when the rule does not fire):
        the document's ElementTree for '/', lxml elements, and lxml attribute
        or text results

    Raises:
        InvalidContextExpression: Context cannot be compiled or evaluated,
            or does not select nodes
    """
    nodes = compile_context(rule, namespaces).resolve(document)
    logger.debug("Context '%s' matched %d node(s)", rule.context, len(nodes))
    return nodes
