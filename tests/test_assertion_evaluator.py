"""Tests for evaluating rule checks against matched nodes."""

from core.document_loader import load_document
from core.models import Check, MessageTemplate, MessageText, NameOf, Rule, ValueOf
from core.settings import (
    KIND_CHECK_ERROR,
    KIND_FAILED_ASSERT,
    KIND_SUCCESSFUL_REPORT,
    SEVERITY_ERROR,
)
from validators.assertion_evaluator import evaluate_rule
from validators.context_resolver import resolve

BOOKS = """<library>
  <book id="b1"><title>Dune</title><price>12</price></book>
  <book id="b2"><price>30</price></book>
</library>"""


def check(kind, test, message="", ordinal=1):
    return Check(kind=kind, test=test, message=MessageTemplate.from_text(message), ordinal=ordinal)


def run(rule, text=BOOKS, namespaces=None):
    namespaces = namespaces or {}
    document = load_document(text)
    return evaluate_rule(rule, resolve(rule, document, namespaces), document, namespaces, "p1")


class TestPolarity:
    def test_assert_fires_when_test_is_false(self):
        rule = Rule(context="book", checks=(check("assert", "title", "Book needs a title"),))
        findings = run(rule)

        assert len(findings) == 1
        finding = findings[0]
        assert finding.kind == KIND_FAILED_ASSERT
        assert finding.severity == SEVERITY_ERROR
        assert finding.message == "Book needs a title"
        assert finding.xpath == "/library[1]/book[2]"
        assert finding.location.line == 3
        assert finding.pattern_id == "p1"

    def test_report_fires_when_test_is_true(self):
        rule = Rule(context="book", checks=(check("report", "title", "Book has a title"),))
        findings = run(rule)

        assert [f.kind for f in findings] == [KIND_SUCCESSFUL_REPORT]
        assert findings[0].xpath == "/library[1]/book[1]"

    def test_assert_and_report_on_same_test_are_complementary(self):
        for test in ("title", "price > 20", "@id = 'b1'", "count(*) = 2"):
            asserted = run(Rule(context="book", checks=(check("assert", test),)))
            reported = run(Rule(context="book", checks=(check("report", test),)))
            assert len(asserted) + len(reported) == 2
            assert {f.xpath for f in asserted}.isdisjoint({f.xpath for f in reported})


class TestOrdering:
    def test_nodes_then_checks(self):
        rule = Rule(
            context="book",
            checks=(
                check("assert", "false()", "first", 1),
                check("assert", "false()", "second", 2),
            ),
        )
        findings = run(rule)
        assert [(f.xpath, f.message) for f in findings] == [
            ("/library[1]/book[1]", "first"),
            ("/library[1]/book[1]", "second"),
            ("/library[1]/book[2]", "first"),
            ("/library[1]/book[2]", "second"),
        ]


class TestMessages:
    def test_value_of_and_name(self):
        message = MessageTemplate(
            (
                MessageText("Price "),
                ValueOf("price"),
                MessageText(" of "),
                NameOf(None),
                MessageText(" "),
                ValueOf("@id"),
                MessageText(" is too high"),
            )
        )
        rule = Rule(
            context="book",
            checks=(Check(kind="report", test="price > 20", message=message),),
        )
        assert run(rule)[0].message == "Price 30 of book b2 is too high"

    def test_name_with_path(self):
        message = MessageTemplate((MessageText("inside "), NameOf("..")))
        rule = Rule(context="title", checks=(Check(kind="report", test="true()", message=message),))
        assert run(rule)[0].message == "inside book"

    def test_whitespace_is_normalized(self):
        rule = Rule(context="book[2]", checks=(check("assert", "title", "\n   Needs\n   a title  "),))
        assert run(rule)[0].message == "Needs a title"

    def test_empty_message_falls_back_to_test(self):
        rule = Rule(context="book", checks=(check("assert", "title"),))
        assert run(rule)[0].message == "Assertion failed (test: title)"


class TestCheckErrors:
    def test_syntax_error_reported_once_and_siblings_still_run(self):
        rule = Rule(
            context="book",
            checks=(
                check("assert", "title[", "broken", 1),
                check("assert", "price < 20", "Too expensive", 2),
            ),
        )
        findings = run(rule)

        assert [f.kind for f in findings] == [KIND_CHECK_ERROR, KIND_FAILED_ASSERT]
        error = findings[0]
        assert "title[" in error.message
        assert "check 1" in error.message
        assert error.xpath == "/library[1]/book[1]"
        assert findings[1].message == "Too expensive"

    def test_runtime_error_reported_once(self):
        rule = Rule(context="book", checks=(check("assert", "count('x') > 0", "never"),))
        findings = run(rule)

        assert len(findings) == 1
        assert findings[0].kind == KIND_CHECK_ERROR
        assert "count('x') > 0" in findings[0].message

    def test_broken_message_expression_is_a_check_error(self):
        message = MessageTemplate((ValueOf("undeclared:x"),))
        rule = Rule(context="book", checks=(Check(kind="assert", test="false()", message=message),))
        findings = run(rule)
        assert [f.kind for f in findings] == [KIND_CHECK_ERROR]

    def test_no_nodes_no_findings(self):
        rule = Rule(context="magazine", checks=(check("assert", "false()"),))
        assert run(rule) == []


class TestNonElementContexts:
    def test_attribute_context(self):
        rule = Rule(context="@id", checks=(check("assert", ". = 'b1'", "unexpected id"),))
        findings = run(rule)

        assert [(f.xpath, f.location.line) for f in findings] == [("/library[1]/book[2]/@id", 3)]

    def test_document_context(self):
        rule = Rule(context="/", checks=(check("assert", "count(//book) > 2", "too few books"),))
        findings = run(rule)

        assert len(findings) == 1
        assert findings[0].xpath == "/"
        assert findings[0].location is None

    def test_name_of_attribute_context(self):
        message = MessageTemplate((NameOf(None), MessageText(" is "), ValueOf(".")))
        rule = Rule(context="book/@id", checks=(Check(kind="report", test="true()", message=message),))
        assert [f.message for f in run(rule)] == ["id is b1", "id is b2"]

    def test_undeclared_prefix_is_a_check_error(self):
        rule = Rule(context="book", checks=(check("assert", "undeclared:title", "never"),))
        findings = run(rule)

        assert [f.kind for f in findings] == [KIND_CHECK_ERROR]
        assert "undeclared:title" in findings[0].message
