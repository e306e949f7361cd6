"""
Schema Parser
=============

Turns Schematron rules text into a RuleDocument.

Patterns, rules and checks keep their document order: that order is the
evaluation order used by the engine.
"""

import logging
from typing import Dict, List, Optional, Union

from lxml import etree

from core.document_loader import parse_markup
from core.errors import MalformedRule
from core.models import (
    Check,
    MessagePart,
    MessageTemplate,
    MessageText,
    NameOf,
    NamespaceBinding,
    Pattern,
    Phase,
    Rule,
    RuleDocument,
    ValueOf,
)
from core.settings import (
    RESERVED_PREFIXES,
    SCHEMATRON_NAMESPACES,
    SUPPORTED_QUERY_BINDINGS,
)

logger = logging.getLogger(__name__)

CHECK_KINDS = ("assert", "report")


def _sch_local(element) -> Optional[str]:
    """Local name of a Schematron element, None for anything else."""
    if not isinstance(element.tag, str) or not element.tag.startswith("{"):
        return None
    uri, local = element.tag[1:].split("}", 1)
    return local if uri in SCHEMATRON_NAMESPACES else None


def _sch_children(element, local_name: str) -> List[etree._Element]:
    return [child for child in element if _sch_local(child) == local_name]


def _text_of(element) -> Optional[str]:
    text = " ".join("".join(element.itertext()).split())
    return text or None


class SchemaParser:
    """Builds a RuleDocument from a parsed Schematron tree."""

    def __init__(self):
        self._abstract_rules: Dict[str, etree._Element] = {}

    def parse(self, rules_text: Union[str, bytes]) -> RuleDocument:
        root = parse_markup(rules_text, source="rules")
        if _sch_local(root) != "schema":
            raise MalformedRule(
                f"root element must be a Schematron 'schema', found '{etree.QName(root).localname}'"
            )

        query_binding = root.get("queryBinding")
        if query_binding and query_binding.lower() not in SUPPORTED_QUERY_BINDINGS:
            logger.warning(
                "queryBinding '%s' is not XPath 1.0; evaluating with the built-in dialect",
                query_binding,
            )

        namespaces = self._parse_namespaces(root)
        self._abstract_rules = self._collect_abstract_rules(root)

        patterns = []
        for pattern_el in _sch_children(root, "pattern"):
            if pattern_el.get("abstract") == "true" or pattern_el.get("is-a"):
                logger.warning(
                    "Skipping abstract pattern '%s': abstract patterns are not supported",
                    pattern_el.get("id"),
                )
                continue
            patterns.append(self._parse_pattern(pattern_el))

        phases = tuple(self._parse_phase(el) for el in _sch_children(root, "phase"))
        title_el = _sch_children(root, "title")

        document = RuleDocument(
            namespaces=tuple(namespaces),
            patterns=tuple(patterns),
            title=_text_of(title_el[0]) if title_el else None,
            query_binding=query_binding,
            phases=phases,
            default_phase=root.get("defaultPhase"),
        )
        logger.debug(
            "Parsed rules: %d namespace(s), %d pattern(s), %d rule(s)",
            len(document.namespaces),
            len(document.patterns),
            sum(len(p.rules) for p in document.patterns),
        )
        return document

    def _parse_namespaces(self, root) -> List[NamespaceBinding]:
        bindings: List[NamespaceBinding] = []
        seen: Dict[str, str] = {}
        for ns_el in _sch_children(root, "ns"):
            prefix = (ns_el.get("prefix") or "").strip()
            uri = (ns_el.get("uri") or "").strip()
            if not prefix or not uri:
                raise MalformedRule("'ns' requires non-empty 'prefix' and 'uri' attributes")
            reserved = RESERVED_PREFIXES.get(prefix)
            if reserved is not None and reserved != uri:
                raise MalformedRule(f"prefix '{prefix}' is reserved for {reserved}")
            if prefix in seen:
                if seen[prefix] != uri:
                    raise MalformedRule(
                        f"prefix '{prefix}' bound to both '{seen[prefix]}' and '{uri}'"
                    )
                continue
            seen[prefix] = uri
            bindings.append(NamespaceBinding(prefix, uri))
        return bindings

    def _collect_abstract_rules(self, root) -> Dict[str, etree._Element]:
        abstract = {}
        for pattern_el in _sch_children(root, "pattern"):
            for rule_el in _sch_children(pattern_el, "rule"):
                if rule_el.get("abstract") == "true":
                    rule_id = rule_el.get("id")
                    if not rule_id:
                        raise MalformedRule("abstract rule requires an 'id'")
                    abstract[rule_id] = rule_el
        return abstract

    def _parse_pattern(self, pattern_el) -> Pattern:
        rules = []
        title_el = _sch_children(pattern_el, "title")
        for rule_el in _sch_children(pattern_el, "rule"):
            if rule_el.get("abstract") == "true":
                continue
            rules.append(self._parse_rule(rule_el, len(rules) + 1))
        return Pattern(
            rules=tuple(rules),
            id=pattern_el.get("id"),
            title=_text_of(title_el[0]) if title_el else None,
        )

    def _parse_rule(self, rule_el, ordinal: int) -> Rule:
        context = (rule_el.get("context") or "").strip()
        if not context:
            raise MalformedRule("rule requires a non-empty 'context'", ordinal=ordinal)

        check_elements = self._expand_checks(rule_el, context, set())
        checks = []
        for position, check_el in enumerate(check_elements, start=1):
            checks.append(self._parse_check(check_el, context, position))
        return Rule(context=context, checks=tuple(checks), ordinal=ordinal, id=rule_el.get("id"))

    def _expand_checks(self, rule_el, context: str, visiting: set) -> List[etree._Element]:
        """Checks of a rule in document order, with <extends rule="..."/> inlined."""
        found = []
        for child in rule_el:
            local = _sch_local(child)
            if local in CHECK_KINDS:
                found.append(child)
            elif local == "extends":
                target = child.get("rule")
                if target not in self._abstract_rules:
                    raise MalformedRule(f"extends unknown abstract rule '{target}'", context)
                if target in visiting:
                    raise MalformedRule(f"circular extends of '{target}'", context)
                found.extend(
                    self._expand_checks(
                        self._abstract_rules[target], context, visiting | {target}
                    )
                )
        return found

    def _parse_check(self, check_el, context: str, ordinal: int) -> Check:
        kind = _sch_local(check_el)
        test = (check_el.get("test") or "").strip()
        if not test:
            raise MalformedRule(f"'{kind}' requires a non-empty 'test'", context, ordinal)
        return Check(
            kind=kind,
            test=test,
            message=self._parse_message(check_el, context, ordinal),
            ordinal=ordinal,
            id=check_el.get("id"),
            role=check_el.get("role"),
        )

    def _parse_message(self, check_el, context: str, ordinal: int) -> MessageTemplate:
        parts: List[MessagePart] = []

        def add_text(value: Optional[str]) -> None:
            if not value:
                return
            if parts and isinstance(parts[-1], MessageText):
                parts[-1] = MessageText(parts[-1].text + value)
            else:
                parts.append(MessageText(value))

        add_text(check_el.text)
        for child in check_el:
            local = _sch_local(child)
            if local == "value-of":
                select = (child.get("select") or "").strip()
                if not select:
                    raise MalformedRule("'value-of' requires a 'select'", context, ordinal)
                parts.append(ValueOf(select))
            elif local == "name":
                parts.append(NameOf((child.get("path") or "").strip() or None))
            elif isinstance(child.tag, str):
                # emph, dir, span and foreign markup contribute their text
                add_text("".join(child.itertext()))
            add_text(child.tail)
        return MessageTemplate(tuple(parts))

    def _parse_phase(self, phase_el) -> Phase:
        phase_id = phase_el.get("id")
        if not phase_id:
            raise MalformedRule("'phase' requires an 'id'")
        active = tuple(
            el.get("pattern") for el in _sch_children(phase_el, "active") if el.get("pattern")
        )
        return Phase(phase_id, active)


def parse_rules(rules_text: Union[str, bytes]) -> RuleDocument:
    """
    Parse a Schematron rules document.

    Args:
        rules_text: Schematron text

    Returns:
        RuleDocument

    Raises:
        MalformedXml: Rules text is not well-formed
        MalformedRule: A pattern, rule or check is structurally invalid
    """
    return SchemaParser().parse(rules_text)
