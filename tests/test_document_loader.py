"""Tests for loading subject documents with source locations."""

import logging

import pytest

from core.document_loader import load_document, scan_start_tags
from core.errors import MalformedXml
from core.models import Location
from core.nodes import node_name, node_path
from sample_documents import XDS_XML


def located(document):
    return [(node_name(e), document.location_of(e)) for e in document.root.iter()]


class TestLocations:
    def test_single_line_positions(self):
        document = load_document("<book><author>X</author></book>")

        assert located(document) == [("book", Location(1, 1)), ("author", Location(1, 7))]

    def test_multi_line_start_tag_reports_its_opening(self):
        document = load_document(XDS_XML)

        assert located(document) == [
            ("rim:ExtrinsicObject", Location(2, 1)),
            ("rim:Classification", Location(4, 3)),
            ("rim:ExternalIdentifier", Location(7, 3)),
        ]

    def test_markup_that_is_not_a_start_tag_is_skipped(self):
        text = (
            '<?xml version="1.0"?>\n'
            "<!DOCTYPE a [<!ELEMENT a ANY>]>\n"
            "<!-- <fake> -->\n"
            "<a><![CDATA[<b>]]><?pi <c>?><d attr='x>y'/></a>"
        )
        assert scan_start_tags(text) == [Location(4, 1), Location(4, 29)]

    def test_attributes_take_owner_location(self):
        document = load_document('<a>\n  <b key="v"/>\n</a>')
        key = document.root.xpath("//b/@key")[0]
        assert document.location_of(key) == Location(2, 3)

    def test_text_takes_parent_location(self):
        document = load_document("<a>\n  <b/>tail</a>")
        tail = document.root.xpath("/a/text()[2]")[0]
        assert document.location_of(tail) == Location(1, 1)

    def test_document_node_has_no_location(self):
        document = load_document("<a/>")
        assert document.location_of(document.tree) is None

    def test_entity_expansion_keeps_scanned_columns(self, caplog):
        text = '<!DOCTYPE r [<!ENTITY e "<q/>">]>\n<r>\n   <a/>&e;<b/></r>'
        with caplog.at_level(logging.WARNING, logger="core.document_loader"):
            document = load_document(text)

        a, b = document.root.find("a"), document.root.find("b")
        assert document.location_of(document.root) == Location(2, 1)
        assert document.location_of(a) == Location(3, 4)
        assert document.location_of(b) == Location(3, 11)
        assert document.location_of(document.root.find("q")).column == 1
        assert "matching by line" in caplog.text


class TestTree:
    def test_text_around_removed_comment_is_merged(self):
        document = load_document("<a>x<!-- c -->y</a>")
        assert document.root.xpath("text()") == ["xy"]

    def test_node_names(self):
        document = load_document('<p:a xmlns:p="urn:p" p:k="1" k="2"/>')
        root = document.root

        assert node_name(root) == "p:a"
        assert [node_name(a) for a in root.xpath("@*")] == ["p:k", "k"]
        assert node_name(document.tree) == ""

    def test_node_paths(self):
        document = load_document("<lib><book x='1'/>one<book><t>hi</t></book>two</lib>")
        root = document.root

        assert node_path(document.tree) == "/"
        assert node_path(root) == "/lib[1]"
        assert node_path(root.xpath("book[2]")[0]) == "/lib[1]/book[2]"
        assert node_path(root.xpath("book[1]/@x")[0]) == "/lib[1]/book[1]/@x"
        assert node_path(root.xpath("book[2]/t/text()")[0]) == "/lib[1]/book[2]/t[1]/text()[1]"
        assert node_path(root.xpath("text()[2]")[0]) == "/lib[1]/text()[2]"

    def test_accepts_bytes(self):
        document = load_document('<?xml version="1.0" encoding="UTF-8"?><a>é</a>'.encode("utf-8"))
        assert document.root.text == "é"


class TestMalformed:
    def test_mismatched_tag(self):
        with pytest.raises(MalformedXml) as exc_info:
            load_document("<book>\n<title></book>")
        error = exc_info.value
        assert error.line == 2
        assert error.source == "document"
        assert "line 2" in str(error)

    def test_empty_document(self):
        with pytest.raises(MalformedXml, match="empty"):
            load_document("")

    def test_trailing_garbage(self):
        with pytest.raises(MalformedXml):
            load_document("<a/><b/>")
