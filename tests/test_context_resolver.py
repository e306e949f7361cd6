"""Tests for resolving rule contexts to document nodes."""

import pytest
from lxml import etree

from core.document_loader import load_document
from core.errors import InvalidContextExpression
from core.models import Rule
from core.nodes import node_key, node_name
from validators.context_resolver import anchor_context, resolve

NS = {"x": "urn:example:extra", "lib": "urn:example:extra"}


def names(nodes):
    return [node_name(n) for n in nodes]


def texts(nodes):
    return [n.text for n in nodes]


def contexts(library, context, namespaces=NS):
    return resolve(Rule(context=context), library, namespaces)


class TestAnchoring:
    @pytest.mark.parametrize(
        "context, anchored",
        [
            ("item", "//item"),
            ("shelf/item[@type='a|b']", "//shelf/item[@type='a|b']"),
            ("/library | x:item", "/library | //x:item"),
            ("@price", "//@price"),
            ("text()", "//text()"),
            ("(//item)[1]", "(//item)[1]"),
            ("count(item)", "count(item)"),
        ],
    )
    def test_relative_branches_are_anchored(self, context, anchored):
        assert anchor_context(context) == anchored


class TestMatching:
    def test_relative_context_matches_anywhere(self, library):
        assert texts(contexts(library, "item")) == ["First", "Second", "Third"]

    def test_relative_context_matches_document_element(self, library):
        assert names(contexts(library, "library")) == ["library"]

    def test_absolute_paths(self, library):
        assert len(contexts(library, "/library/shelf")) == 2
        assert contexts(library, "/shelf") == []
        assert len(contexts(library, "//item")) == 3

    def test_root_context(self, library):
        matched = contexts(library, "/")
        assert len(matched) == 1
        assert isinstance(matched[0], etree._ElementTree)

    def test_predicates(self, library):
        assert texts(contexts(library, "item[@type='a']")) == ["First"]
        assert len(contexts(library, "item[@type]")) == 2
        assert [n.get("id") for n in contexts(library, "shelf[item]")] == ["s1"]

    def test_attribute_context(self, library):
        assert contexts(library, "@price") == ["5", "20", "12"]
        assert names(contexts(library, "@price")) == ["price", "price", "price"]

    def test_union_in_document_order(self, library):
        matched = contexts(library, "x:item | shelf")
        assert names(matched) == ["shelf", "shelf", "x:item"]

    def test_no_match_is_empty(self, library):
        assert contexts(library, "missing") == []


class TestNamespaces:
    def test_prefix_is_irrelevant_only_uri_matters(self):
        plain = load_document('<ClinicalDocument xmlns="urn:hl7-org:v3"/>')
        prefixed = load_document('<h:ClinicalDocument xmlns:h="urn:hl7-org:v3"/>')
        namespaces = {"cda": "urn:hl7-org:v3"}

        for document in (plain, prefixed):
            assert len(resolve(Rule(context="cda:ClinicalDocument"), document, namespaces)) == 1

    def test_unprefixed_name_does_not_match_namespaced_element(self):
        document = load_document('<ClinicalDocument xmlns="urn:hl7-org:v3"/>')
        assert resolve(Rule(context="ClinicalDocument"), document, {}) == []


class TestProperties:
    def test_resolution_is_idempotent(self, library):
        rule = Rule(context="shelf/item | x:item | @type")
        first = resolve(rule, library, NS)
        second = resolve(rule, library, NS)
        assert [node_key(n) for n in first] == [node_key(n) for n in second]

    def test_results_are_in_document_order_without_duplicates(self, library):
        matched = contexts(library, "item | item[@type] | shelf")
        assert names(matched) == ["shelf", "item", "item", "item", "shelf"]
        assert len({node_key(n) for n in matched}) == len(matched)


class TestInvalidContexts:
    @pytest.mark.parametrize(
        "context, reason",
        [
            ("book[", "book\\["),
            ("count(item)", "location path"),
            ("'literal'", "location path"),
            ("item = 'a'", "location path"),
            ("missing:item", "missing:item"),
        ],
    )
    def test_rejected(self, library, context, reason):
        rule = Rule(context=context, ordinal=3)
        with pytest.raises(InvalidContextExpression, match=reason) as exc_info:
            resolve(rule, library, NS)
        assert exc_info.value.rule is rule
        assert "rule 3" in str(exc_info.value)

    def test_runtime_failure_is_invalid_context(self, library):
        rule = Rule(context="item[count('x')]")
        with pytest.raises(InvalidContextExpression) as exc_info:
            resolve(rule, library, NS)
        assert isinstance(exc_info.value.__cause__.__cause__, etree.XPathEvalError)
