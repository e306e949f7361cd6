"""
Nodes
=====

Helpers for the nodes a rule context can select from an lxml tree.

XPath results come in four shapes:
- the document node, represented by the document's lxml ElementTree
- elements (lxml _Element)
- attributes and text, returned by lxml as "smart" strings that know their
  parent element

The helpers below give every shape a name, a path and a stable identity.
"""

from typing import Optional, Tuple

from lxml import etree

from core.settings import XML_NS

DOCUMENT = "document"
ELEMENT = "element"
ATTRIBUTE = "attribute"
TEXT = "text"


def node_kind(node) -> str:
    if isinstance(node, etree._ElementTree):
        return DOCUMENT
    if isinstance(node, etree._Element):
        return ELEMENT
    if getattr(node, "is_attribute", False):
        return ATTRIBUTE
    return TEXT


def split_name(tag: str) -> Tuple[Optional[str], str]:
    """'{uri}local' -> (uri, local); plain names have no URI."""
    if tag.startswith("{"):
        uri, local = tag[1:].split("}", 1)
        return uri, local
    return None, tag


def element_name(element: etree._Element) -> str:
    local = etree.QName(element).localname
    return f"{element.prefix}:{local}" if element.prefix else local


def attribute_name(owner: etree._Element, attrname: str) -> str:
    uri, local = split_name(attrname)
    if not uri:
        return local
    if uri == XML_NS:
        return f"xml:{local}"
    for prefix, bound in owner.nsmap.items():
        if prefix and bound == uri:
            return f"{prefix}:{local}"
    return local


def text_position(node) -> Tuple[etree._Element, int]:
    """
    Locate a text result among the text() children of its parent.

    lxml stores text either as an element's .text (the first text child) or
    as the .tail of a child element (text following that child).

    Returns:
        (parent element, 1-based index of the text node)
    """
    owner = node.getparent()
    if node.is_text:
        return owner, 1

    parent = owner.getparent()
    index = 1 if parent.text else 0
    for child in parent:
        if child.tail:
            index += 1
        if child is owner:
            break
    return parent, index


def nearest_element(node) -> etree._Element:
    """Element that stands in for a node when an element is needed."""
    kind = node_kind(node)
    if kind == DOCUMENT:
        return node.getroot()
    if kind == ELEMENT:
        return node
    if kind == ATTRIBUTE:
        return node.getparent()
    return text_position(node)[0]


def node_name(node) -> str:
    """Qualified name as written in the document ('' for text and the document)."""
    kind = node_kind(node)
    if kind == ELEMENT:
        return element_name(node)
    if kind == ATTRIBUTE:
        return attribute_name(node.getparent(), node.attrname)
    return ""


def node_key(node) -> tuple:
    """
    Hashable identity of a node.

    Attribute and text results are new string objects on every evaluation, so
    they are identified by their parent and position instead.
    """
    kind = node_kind(node)
    if kind == DOCUMENT:
        return (DOCUMENT,)
    if kind == ELEMENT:
        return (ELEMENT, node)
    if kind == ATTRIBUTE:
        return (ATTRIBUTE, node.getparent(), node.attrname)
    parent, index = text_position(node)
    return (TEXT, parent, index)


def node_path(node) -> str:
    """
    Absolute path of a node, e.g. '/lib[1]/book[2]/@id' or '.../text()[1]'.
    """
    kind = node_kind(node)
    if kind == DOCUMENT:
        return "/"
    if kind == ATTRIBUTE:
        owner = node.getparent()
        return f"{node_path(owner)}/@{attribute_name(owner, node.attrname)}"
    if kind == TEXT:
        parent, index = text_position(node)
        return f"{node_path(parent)}/text()[{index}]"

    steps = []
    element = node
    while element is not None:
        index = 1 + sum(
            1 for sibling in element.itersiblings(preceding=True) if sibling.tag == element.tag
        )
        steps.append(f"{element_name(element)}[{index}]")
        element = element.getparent()
    return "/" + "/".join(reversed(steps))
