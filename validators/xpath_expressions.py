"""
XPath Expressions
=================

Compiled XPath 1.0 expressions for rule tests and message parts, evaluated
with lxml against the subject tree.

lxml evaluates an expression with an element as context node. Rule contexts
may also select the document node, attributes or text, so a test is wrapped
in a selector that reaches the real context node from the nearest element and
evaluates the test in a predicate:

    document     boolean((/)[boolean(TEST)])
    attribute    boolean(@*[local-name() = $_sch_local
                            and namespace-uri() = $_sch_uri][boolean(TEST)])
    text         boolean(text()[$_sch_index][boolean(TEST)])

Message expressions (value-of, name) at element contexts are compiled XPath
too. At other contexts they run in a generated XSLT stylesheet whose
for-each selects the context node.
"""

from typing import Dict

from lxml import etree

from core.errors import ExpressionEvaluationError, ExpressionSyntaxError
from core.nodes import (
    ATTRIBUTE,
    DOCUMENT,
    ELEMENT,
    TEXT,
    node_kind,
    split_name,
    text_position,
)
from core.settings import XSL_NS

_BOOLEAN_WRAPPERS = {
    ELEMENT: "boolean({test})",
    DOCUMENT: "boolean((/)[boolean({test})])",
    ATTRIBUTE: (
        "boolean(@*[local-name() = $_sch_local and namespace-uri() = $_sch_uri]"
        "[boolean({test})])"
    ),
    TEXT: "boolean(text()[$_sch_index][boolean({test})])",
}

# Select the context node from the document root; the owner element is
# addressed by its position among all elements
_NODE_SELECTORS = {
    DOCUMENT: "/",
    ATTRIBUTE: (
        "(//*)[position() = $_sch_element]"
        "/@*[local-name() = $_sch_local and namespace-uri() = $_sch_uri]"
    ),
    TEXT: "(//*)[position() = $_sch_element]/text()[position() = $_sch_index]",
}
_STYLESHEET_PARAMS = ("_sch_element", "_sch_local", "_sch_uri", "_sch_index")


def _reason(error: Exception) -> str:
    return str(error) or type(error).__name__


def _element_position(element: etree._Element) -> int:
    """1-based position of an element in document order."""
    return int(element.xpath("count(preceding::*) + count(ancestor::*)")) + 1


def compile_xpath(expression: str, namespaces: Dict[str, str], shown: str = None) -> etree.XPath:
    """
    Compile an XPath 1.0 expression.

    Args:
        expression: Expression text
        namespaces: Prefix bindings of the rules document
        shown: Text reported in errors (defaults to the expression)

    Raises:
        ExpressionSyntaxError: Expression does not compile
    """
    if not expression.strip():
        raise ExpressionSyntaxError(expression, "empty expression")
    try:
        return etree.XPath(expression, namespaces=namespaces)
    except etree.XPathError as e:
        raise ExpressionSyntaxError(shown or expression, _reason(e)) from e


def run_xpath(compiled: etree.XPath, context: etree._Element, shown: str = None, **variables):
    """
    Evaluate a compiled expression with an element as context node.

    Raises:
        ExpressionEvaluationError: Unknown prefix or function, type error, ...
    """
    try:
        return compiled(context, **variables)
    except etree.XPathError as e:
        raise ExpressionEvaluationError(f"{_reason(e)} in '{shown or compiled.path}'") from e


class BooleanExpression:
    """A test, evaluated to an XPath boolean on any kind of context node."""

    def __init__(self, expression: str, namespaces: Dict[str, str]):
        self.expression = expression
        self.namespaces = namespaces
        compile_xpath(expression, namespaces)
        self._wrapped = {
            kind: compile_xpath(template.format(test=expression), namespaces, shown=expression)
            for kind, template in _BOOLEAN_WRAPPERS.items()
        }

    def evaluate(self, node) -> bool:
        kind = node_kind(node)
        compiled = self._wrapped[kind]
        if kind == DOCUMENT:
            result = run_xpath(compiled, node.getroot(), self.expression)
        elif kind == ELEMENT:
            result = run_xpath(compiled, node, self.expression)
        elif kind == ATTRIBUTE:
            uri, local = split_name(node.attrname)
            result = run_xpath(
                compiled, node.getparent(), self.expression,
                _sch_local=local, _sch_uri=uri or "",
            )
        else:
            parent, index = text_position(node)
            result = run_xpath(compiled, parent, self.expression, _sch_index=index)
        return bool(result)


class _MessageExpression:
    """
    Message expression wrapped in an XPath function (string() or name()).

    Element contexts use a compiled XPath. Other contexts use a generated
    XSLT stylesheet whose for-each selects the context node, since lxml only
    evaluates XPath with an element as context node.
    """

    function = ""

    def __init__(self, expression: str, namespaces: Dict[str, str]):
        self.expression = expression
        self.namespaces = namespaces
        compile_xpath(expression, namespaces)
        self._compiled = compile_xpath(
            f"{self.function}({expression})", namespaces, shown=expression
        )
        self._stylesheets = {}

    def _stylesheet(self, kind: str) -> etree.XSLT:
        stylesheet = self._stylesheets.get(kind)
        if stylesheet is not None:
            return stylesheet

        nsmap = dict(self.namespaces)
        nsmap["axsl"] = XSL_NS
        root = etree.Element(f"{{{XSL_NS}}}stylesheet", nsmap=nsmap, version="1.0")
        etree.SubElement(root, f"{{{XSL_NS}}}output", method="text")
        for name in _STYLESHEET_PARAMS:
            etree.SubElement(root, f"{{{XSL_NS}}}param", name=name)
        template = etree.SubElement(root, f"{{{XSL_NS}}}template", match="/")
        for_each = etree.SubElement(
            template, f"{{{XSL_NS}}}for-each", select=_NODE_SELECTORS[kind]
        )
        etree.SubElement(
            for_each, f"{{{XSL_NS}}}value-of", select=f"{self.function}({self.expression})"
        )
        try:
            stylesheet = etree.XSLT(root, access_control=etree.XSLTAccessControl.DENY_ALL)
        except etree.XSLTError as e:
            raise ExpressionEvaluationError(f"{_reason(e)} in '{self.expression}'") from e
        self._stylesheets[kind] = stylesheet
        return stylesheet

    def evaluate(self, node) -> str:
        kind = node_kind(node)
        if kind == ELEMENT:
            return str(run_xpath(self._compiled, node, self.expression))

        stylesheet = self._stylesheet(kind)
        if kind == DOCUMENT:
            tree, params = node, {}
        elif kind == ATTRIBUTE:
            owner = node.getparent()
            uri, local = split_name(node.attrname)
            tree = owner.getroottree()
            params = {
                "_sch_element": str(_element_position(owner)),
                "_sch_local": etree.XSLT.strparam(local),
                "_sch_uri": etree.XSLT.strparam(uri or ""),
            }
        else:
            parent, index = text_position(node)
            tree = parent.getroottree()
            params = {"_sch_element": str(_element_position(parent)), "_sch_index": str(index)}

        try:
            return str(stylesheet(tree, **params))
        except etree.XSLTError as e:
            raise ExpressionEvaluationError(f"{_reason(e)} in '{self.expression}'") from e


class StringExpression(_MessageExpression):
    """A value-of select, converted with XPath string()."""

    function = "string"


class NameExpression(_MessageExpression):
    """A name path: qualified name of the first selected node."""

    function = "name"
