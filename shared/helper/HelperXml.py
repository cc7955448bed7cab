"""XML decoding for CCC webhook payloads.

parse_xml turns a document into plain dicts without explicit arrays:

  <Rq><Id>1</Id></Rq>                  → {"Rq": {"Id": "1"}}
  <Rq><Id>1</Id><Id>2</Id></Rq>        → {"Rq": {"Id": ["1", "2"]}}
  <Rq a="x">text</Rq>                  → {"Rq": {"$": {"a": "x"}, "_": "text"}}
  <Rq/>                                → {"Rq": ""}

Any node is therefore either a scalar (str / dict) or a sequence (list).
Callers go through as_list / first_node / first_text instead of assuming one
shape.
"""

from typing import Any
import re
import xml.etree.ElementTree as ET

from shared.helper.errors import ParseError

XmlNode = str | dict | list

ATTRIBUTES_KEY = "$"
TEXT_KEY = "_"

_DECLARED_ENCODING = re.compile(rb"^\s*<\?xml[^>]*?\bencoding\s*=\s*[\"']([A-Za-z][A-Za-z0-9._-]*)[\"']")


def _strip_namespace(tag: str) -> str:
    return tag.split("}", 1)[1] if tag.startswith("{") else tag


def _element_to_node(element: ET.Element) -> XmlNode:
    children = list(element)
    text = (element.text or "").strip()

    if not children and not element.attrib:
        return text

    node: dict[str, Any] = {}
    if element.attrib:
        node[ATTRIBUTES_KEY] = {_strip_namespace(k): v for k, v in element.attrib.items()}
    for child in children:
        tag = _strip_namespace(child.tag)
        value = _element_to_node(child)
        if tag in node:
            existing = node[tag]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[tag] = [existing, value]
        else:
            node[tag] = value
    if text:
        node[TEXT_KEY] = text
    return node


def parse_xml(raw: bytes | str) -> dict[str, XmlNode]:
    """Parse an XML document into {root_tag: node}.

    Raises:
        ParseError: If the document is not well-formed.
    """
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as e:
        raise ParseError(f"Malformed XML payload: {e}") from e
    return {_strip_namespace(root.tag): _element_to_node(root)}


def as_list(node: XmlNode | None) -> list:
    """Return node as a sequence: None → [], a list unchanged, anything else wrapped."""
    if node is None:
        return []
    if isinstance(node, list):
        return node
    return [node]


def first_node(node: XmlNode | None) -> XmlNode | None:
    """Return the first element of a sequence node, or the node itself."""
    items = as_list(node)
    return items[0] if items else None


def first_text(node: XmlNode | None) -> str | None:
    """Return the text of node, taking the first element of a sequence.

    Elements that carry attributes contribute their "_" text. Empty text
    returns None.
    """
    node = first_node(node)
    if isinstance(node, dict):
        node = node.get(TEXT_KEY)
    if isinstance(node, str) and node:
        return node
    return None


def find_path(node: XmlNode | None, *path: str) -> XmlNode | None:
    """Walk nested keys, taking the first element wherever a sequence is met."""
    for key in path:
        node = first_node(node)
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def declared_encoding(raw: bytes) -> str | None:
    """Return the encoding named in the XML declaration, e.g. "ISO-8859-1"."""
    match = _DECLARED_ENCODING.match(raw)
    return match.group(1).decode("ascii") if match else None
