"""
Document Loader
===============

Parses the subject XML document with lxml.

lxml does the well-formedness checking, entity handling and namespace
resolution, and rule expressions run on its tree. Start-tag columns are not
exposed by lxml, so a lexical scan of the source text recovers (line, column)
for every start tag in document order.
"""

import logging
import re
from collections import defaultdict, deque
from typing import Dict, List, Optional, Union

from lxml import etree

from core.errors import MalformedXml
from core.models import Location
from core.nodes import DOCUMENT, element_name, nearest_element, node_kind

logger = logging.getLogger(__name__)

_POSITION_SUFFIX = re.compile(r",\s*line \d+,\s*column \d+\s*$")
_TAG_NAME = re.compile(r"[^\s/>]+")


def _make_parser() -> etree.XMLParser:
    # A fresh parser per call: lxml parsers keep per-parse error state
    return etree.XMLParser(
        encoding="utf-8",
        no_network=True,
        load_dtd=False,
        remove_comments=True,
        remove_pis=True,
        huge_tree=False,
    )


def parse_markup(text: Union[str, bytes], source: str = "document") -> etree._Element:
    """
    Parse XML text with lxml, mapping syntax errors to MalformedXml.

    Args:
        text: XML text (str, or UTF-8 encoded bytes)
        source: Label used in error messages ('document' or 'rules')

    Returns:
        Root lxml element
    """
    data = text.encode("utf-8") if isinstance(text, str) else text
    if not data.strip():
        raise MalformedXml(1, 1, "Document is empty", source)
    try:
        return etree.fromstring(data, parser=_make_parser())
    except etree.XMLSyntaxError as e:
        line, column = e.position if e.position else (0, 0)
        reason = _POSITION_SUFFIX.sub("", str(e.msg or e)).strip()
        raise MalformedXml(line or 1, column or 1, reason or "not well-formed", source) from e


def scan_start_tags(text: str) -> List[Location]:
    """
    Locate every start tag (including empty-element tags) in document order.

    Assumes the text is well-formed. Lines and columns are 1-based; columns
    count characters.

    Args:
        text: Raw XML text

    Returns:
        One Location per element, in document order
    """
    locations = []
    length = len(text)
    line = 1
    line_start = 0
    i = 0

    def advance(upto: int) -> None:
        nonlocal line, line_start
        newlines = text.count("\n", i, upto)
        if newlines:
            line += newlines
            line_start = text.rfind("\n", i, upto) + 1

    while i < length:
        lt = text.find("<", i)
        if lt < 0:
            break
        advance(lt)
        i = lt

        if text.startswith("<!--", i):
            end = text.find("-->", i + 4)
            end = length if end < 0 else end + 3
        elif text.startswith("<![CDATA[", i):
            end = text.find("]]>", i + 9)
            end = length if end < 0 else end + 3
        elif text.startswith("<?", i):
            end = text.find("?>", i + 2)
            end = length if end < 0 else end + 2
        elif text.startswith("<!", i):
            end = _skip_declaration(text, i)
        elif text.startswith("</", i):
            end = text.find(">", i)
            end = length if end < 0 else end + 1
        else:
            locations.append(Location(line, i - line_start + 1))
            end = _skip_tag(text, i)

        advance(end)
        i = end

    return locations


def _skip_tag(text: str, start: int) -> int:
    quote = None
    for j in range(start + 1, len(text)):
        ch = text[j]
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == ">":
            return j + 1
    return len(text)


def _skip_declaration(text: str, start: int) -> int:
    # <!DOCTYPE ...> may carry an internal subset in brackets
    depth = 0
    quote = None
    for j in range(start + 2, len(text)):
        ch = text[j]
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        elif ch == ">" and depth <= 0:
            return j + 1
    return len(text)


class SubjectDocument:
    """
    A parsed subject document: the lxml tree plus start-tag locations.

    Rule contexts and checks are evaluated directly on the lxml tree; this
    class only adds what lxml does not know (source columns) and nothing is
    modified after loading.
    """

    def __init__(self, root: etree._Element, locations: Dict[etree._Element, Location]):
        self.root = root
        self.tree = root.getroottree()
        self.locations = locations

    def location_of(self, node) -> Optional[Location]:
        """Start-tag location of a node (owner element for attributes and text)."""
        if node_kind(node) == DOCUMENT:
            return None
        return self.locations.get(nearest_element(node))


def _scan_names(text: str, locations: List[Location]) -> List[str]:
    names = []
    lines = text.split("\n")
    for location in locations:
        line = lines[location.line - 1]
        match = _TAG_NAME.match(line, location.column)
        names.append(match.group(0) if match else "")
    return names


def _match_locations(
    elements: List[etree._Element], text: str, locations: List[Location]
) -> Dict[etree._Element, Location]:
    if len(elements) == len(locations):
        return dict(zip(elements, locations))

    # Entity expansion can add elements that have no start tag of their own.
    # Pair each element with the next unused tag of the same name on its line.
    logger.warning(
        "Start-tag scan found %d tags for %d elements; matching by line",
        len(locations),
        len(elements),
    )
    by_line = defaultdict(deque)
    for location, name in zip(locations, _scan_names(text, locations)):
        by_line[location.line].append((location, name))

    matched = {}
    for element in elements:
        line = element.sourceline or 1
        candidates = by_line.get(line, ())
        found = None
        for entry in candidates:
            if entry[1] == element_name(element):
                found = entry
                break
        if found is not None:
            candidates.remove(found)
            matched[element] = found[0]
        else:
            matched[element] = Location(line, 1)
    return matched


def load_document(xml_text: Union[str, bytes]) -> SubjectDocument:
    """
    Parse the subject XML document.

    Args:
        xml_text: XML document text

    Returns:
        SubjectDocument wrapping the lxml tree

    Raises:
        MalformedXml: On the first well-formedness violation
    """
    root = parse_markup(xml_text, source="document")
    text = xml_text.decode("utf-8", errors="replace") if isinstance(xml_text, bytes) else xml_text
    elements = list(root.iter(etree.Element))
    document = SubjectDocument(root, _match_locations(elements, text, scan_start_tags(text)))
    logger.debug("Loaded document with root <%s>", element_name(root))
    return document
