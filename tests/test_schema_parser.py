"""Tests for parsing Schematron rules documents."""

import pytest

from core.errors import MalformedRule, MalformedXml
from core.models import MessageText, NameOf, ValueOf
from core.schema_parser import parse_rules
from core.settings import ISO_SCHEMATRON_NS
from sample_documents import CDA_RULES, REQUIRED_ELEMENTS_RULES

SCH = f'xmlns="{ISO_SCHEMATRON_NS}"'


def schema(body, attrs=""):
    return f"<schema {SCH} {attrs}>{body}</schema>"


class TestStructure:
    def test_patterns_rules_and_checks_in_document_order(self):
        doc = parse_rules(REQUIRED_ELEMENTS_RULES)

        assert len(doc.patterns) == 1
        rule = doc.patterns[0].rules[0]
        assert rule.context == "book"
        assert [c.test for c in rule.checks] == ["title", "author"]
        assert [c.ordinal for c in rule.checks] == [1, 2]
        assert all(c.is_assert for c in rule.checks)
        assert rule.checks[0].message.static_text == "Each book must have a title"

    def test_namespace_bindings(self):
        doc = parse_rules(CDA_RULES)

        assert [(b.prefix, b.uri) for b in doc.namespaces] == [("cda", "urn:hl7-org:v3")]
        assert doc.namespace_map()["cda"] == "urn:hl7-org:v3"
        assert doc.namespace_map() == {"cda": "urn:hl7-org:v3"}

    def test_legacy_namespace_accepted(self):
        text = (
            '<schema xmlns="http://www.ascc.net/xml/schematron">'
            '<pattern><rule context="a"><report test="b">b found</report></rule></pattern>'
            "</schema>"
        )
        check = parse_rules(text).patterns[0].rules[0].checks[0]
        assert check.kind == "report"
        assert not check.is_assert

    def test_title_phases_and_default_phase(self):
        text = schema(
            "<title>Library rules</title>"
            '<phase id="quick"><active pattern="p1"/></phase>'
            '<pattern id="p1"><rule context="a"><assert test="b">x</assert></rule></pattern>'
            '<pattern id="p2"><rule context="a"><assert test="c">y</assert></rule></pattern>',
            attrs='defaultPhase="quick"',
        )
        doc = parse_rules(text)

        assert doc.title == "Library rules"
        assert doc.default_phase == "quick"
        assert [p.id for p in doc.patterns_for_phase(None)] == ["p1"]
        assert [p.id for p in doc.patterns_for_phase("#ALL")] == ["p1", "p2"]
        assert doc.patterns_for_phase("missing") is None

    def test_check_id_and_role(self):
        text = schema(
            '<pattern><rule context="a">'
            '<assert id="a1" role="warning" test="b">x</assert>'
            "</rule></pattern>"
        )
        check = parse_rules(text).patterns[0].rules[0].checks[0]
        assert (check.id, check.role) == ("a1", "warning")

    def test_empty_schema_has_no_patterns(self):
        assert parse_rules(schema("")).patterns == ()


class TestMessages:
    def test_value_of_and_name_parts(self):
        text = schema(
            '<pattern><rule context="item">'
            '<report test="@price &gt; 10">Price <value-of select="@price"/> of '
            '<name/> in <name path=".."/> is <emph>too</emph> high</report>'
            "</rule></pattern>"
        )
        message = parse_rules(text).patterns[0].rules[0].checks[0].message

        assert message.parts == (
            MessageText("Price "),
            ValueOf("@price"),
            MessageText(" of "),
            NameOf(None),
            MessageText(" in "),
            NameOf(".."),
            MessageText(" is too high"),
        )
        assert message.expressions == ["@price", ".."]

    def test_value_of_without_select_is_malformed(self):
        text = schema('<pattern><rule context="a"><assert test="b"><value-of/></assert></rule></pattern>')
        with pytest.raises(MalformedRule):
            parse_rules(text)


class TestAbstractRules:
    def test_extends_inlines_abstract_checks(self):
        text = schema(
            "<pattern>"
            '<rule abstract="true" id="named"><assert test="@name">needs a name</assert></rule>'
            '<rule context="item"><extends rule="named"/><assert test="@id">needs an id</assert></rule>'
            "</pattern>"
        )
        rules = parse_rules(text).patterns[0].rules

        assert len(rules) == 1
        assert [c.test for c in rules[0].checks] == ["@name", "@id"]
        assert rules[0].ordinal == 1

    def test_unknown_extends_target(self):
        text = schema('<pattern><rule context="a"><extends rule="nope"/></rule></pattern>')
        with pytest.raises(MalformedRule, match="nope"):
            parse_rules(text)

    def test_circular_extends(self):
        text = schema(
            "<pattern>"
            '<rule abstract="true" id="x"><extends rule="y"/></rule>'
            '<rule abstract="true" id="y"><extends rule="x"/></rule>'
            '<rule context="a"><extends rule="x"/></rule>'
            "</pattern>"
        )
        with pytest.raises(MalformedRule, match="circular"):
            parse_rules(text)


class TestMalformed:
    def test_not_well_formed(self):
        with pytest.raises(MalformedXml) as exc_info:
            parse_rules("<schema><pattern></schema>")
        assert exc_info.value.source == "rules"
        assert exc_info.value.line == 1

    def test_wrong_root_element(self):
        with pytest.raises(MalformedRule, match="schema"):
            parse_rules(f"<rules {SCH}/>")

    def test_schema_outside_schematron_namespace(self):
        with pytest.raises(MalformedRule):
            parse_rules("<schema><pattern/></schema>")

    def test_missing_test_names_rule_and_position(self):
        text = schema(
            '<pattern><rule context="book">'
            '<assert test="title">ok</assert><assert>no test</assert>'
            "</rule></pattern>"
        )
        with pytest.raises(MalformedRule) as exc_info:
            parse_rules(text)
        assert exc_info.value.rule_context == "book"
        assert exc_info.value.ordinal == 2

    def test_empty_context(self):
        text = schema('<pattern><rule context="  "><assert test="a">x</assert></rule></pattern>')
        with pytest.raises(MalformedRule, match="context"):
            parse_rules(text)

    def test_conflicting_prefix(self):
        text = schema('<ns prefix="a" uri="urn:one"/><ns prefix="a" uri="urn:two"/>')
        with pytest.raises(MalformedRule, match="prefix 'a'"):
            parse_rules(text)

    def test_duplicate_identical_prefix_collapses(self):
        text = schema('<ns prefix="a" uri="urn:one"/><ns prefix="a" uri="urn:one"/>')
        assert len(parse_rules(text).namespaces) == 1

    def test_reserved_xml_prefix(self):
        text = schema('<ns prefix="xml" uri="urn:other"/>')
        with pytest.raises(MalformedRule, match="reserved"):
            parse_rules(text)
