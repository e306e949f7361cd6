"""Pytest configuration and fixtures for validator tests."""

import pytest

from core.document_loader import load_document
from sample_documents import (
    REQUIRED_ELEMENTS_RULES,
    REQUIRED_ELEMENTS_XML,
)


@pytest.fixture
def book_rules():
    """Rules requiring a title and an author on every book."""
    return REQUIRED_ELEMENTS_RULES


@pytest.fixture
def book_xml():
    """Book document satisfying the book rules."""
    return REQUIRED_ELEMENTS_XML


@pytest.fixture
def library():
    """Loaded document with nested, attributed and repeated elements."""
    return load_document(
        """<library xmlns:x="urn:example:extra">
  <shelf id="s1">
    <item type="a" price="5">First</item>
    <item type="b" price="20">Second</item>
    <item price="12">Third</item>
  </shelf>
  <shelf id="s2">
    <x:item type="a">Namespaced</x:item>
  </shelf>
</library>"""
    )


@pytest.fixture
def rules_dir(tmp_path, book_rules, book_xml):
    """Directory with a rules file, one valid and one invalid document."""
    (tmp_path / "rules.sch").write_text(book_rules, encoding="utf-8")
    samples = tmp_path / "samples"
    samples.mkdir()
    (samples / "good.xml").write_text(book_xml, encoding="utf-8")
    (samples / "bad.xml").write_text("<book><author>X</author></book>", encoding="utf-8")
    (samples / "notes.txt").write_text("not xml", encoding="utf-8")
    return tmp_path
