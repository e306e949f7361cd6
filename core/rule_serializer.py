"""
Rule Serializer
===============

Writes a RuleDocument back out as ISO Schematron text. Parsing the output
again yields an equivalent RuleDocument.
"""

from lxml import etree

from core.models import Check, MessageText, NameOf, Pattern, Rule, RuleDocument, ValueOf
from core.settings import ISO_SCHEMATRON_NS

SCH = "{%s}" % ISO_SCHEMATRON_NS


def _set_optional(element, name: str, value) -> None:
    if value:
        element.set(name, value)


def _append_text(element, text: str) -> None:
    if len(element):
        last = element[-1]
        last.tail = (last.tail or "") + text
    else:
        element.text = (element.text or "") + text


def _write_check(parent, check: Check) -> None:
    check_el = etree.SubElement(parent, SCH + check.kind)
    check_el.set("test", check.test)
    _set_optional(check_el, "id", check.id)
    _set_optional(check_el, "role", check.role)
    for part in check.message.parts:
        if isinstance(part, MessageText):
            _append_text(check_el, part.text)
        elif isinstance(part, ValueOf):
            etree.SubElement(check_el, SCH + "value-of").set("select", part.select)
        elif isinstance(part, NameOf):
            name_el = etree.SubElement(check_el, SCH + "name")
            _set_optional(name_el, "path", part.path)


def _write_rule(parent, rule: Rule) -> None:
    rule_el = etree.SubElement(parent, SCH + "rule")
    rule_el.set("context", rule.context)
    _set_optional(rule_el, "id", rule.id)
    for check in rule.checks:
        _write_check(rule_el, check)


def _write_pattern(parent, pattern: Pattern) -> None:
    pattern_el = etree.SubElement(parent, SCH + "pattern")
    _set_optional(pattern_el, "id", pattern.id)
    if pattern.title:
        etree.SubElement(pattern_el, SCH + "title").text = pattern.title
    for rule in pattern.rules:
        _write_rule(pattern_el, rule)


def to_element(rule_document: RuleDocument) -> etree._Element:
    """Build the lxml tree for a RuleDocument."""
    root = etree.Element(SCH + "schema", nsmap={None: ISO_SCHEMATRON_NS})
    _set_optional(root, "queryBinding", rule_document.query_binding)
    _set_optional(root, "defaultPhase", rule_document.default_phase)

    if rule_document.title:
        etree.SubElement(root, SCH + "title").text = rule_document.title
    for binding in rule_document.namespaces:
        ns_el = etree.SubElement(root, SCH + "ns")
        ns_el.set("prefix", binding.prefix)
        ns_el.set("uri", binding.uri)
    for phase in rule_document.phases:
        phase_el = etree.SubElement(root, SCH + "phase")
        phase_el.set("id", phase.id)
        for pattern_id in phase.active_patterns:
            etree.SubElement(phase_el, SCH + "active").set("pattern", pattern_id)
    for pattern in rule_document.patterns:
        _write_pattern(root, pattern)
    return root


def serialize_rules(rule_document: RuleDocument) -> str:
    """
    Serialize a RuleDocument to Schematron text.

    Args:
        rule_document: Rules to serialize

    Returns:
        UTF-8 Schematron document text with an XML declaration
    """
    root = to_element(rule_document)
    # Indentation may add whitespace inside messages; rendering normalises it
    body = etree.tostring(root, encoding="unicode", pretty_print=True)
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + body
