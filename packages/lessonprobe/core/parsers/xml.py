"""Generic XML parsing utilities with error handling.

This module provides a small, robust wrapper around ElementTree with
consistent error handling, plus namespace-agnostic lookup helpers. Manifest
and authoring-tool documents come in several namespace flavours (IMS CP,
ADL CP, IMS SS, LOM), so lookups compare local names only.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterator


class XMLParser:
    """Generic XML parser with error handling.

    Wraps Python's ElementTree with:
    - Clear error messages for malformed XML
    - Rejection of empty documents
    - Tolerance of a leading byte order mark

    Example:
        >>> parser = XMLParser()
        >>> root = parser.parse_string("<manifest><resources/></manifest>")
        >>> local_name(root.tag)
        'manifest'
    """

    def parse_string(self, xml_str: str) -> ET.Element:
        """Parse XML from string.

        Args:
            xml_str: XML content as string

        Returns:
            Parsed Element (root element)

        Raises:
            ValueError: If XML is malformed or empty
        """
        if not xml_str or not xml_str.strip():
            raise ValueError("Malformed XML string: document is empty")
        try:
            return ET.fromstring(xml_str.lstrip("\ufeff"))
        except ET.ParseError as e:
            raise ValueError(f"Malformed XML string: {e}") from e


def local_name(tag: str) -> str:
    """Strip the ``{namespace}`` or ``prefix:`` part of a tag or attribute name."""
    if tag.startswith("{"):
        tag = tag.rsplit("}", 1)[-1]
    return tag.rsplit(":", 1)[-1]


def children(elem: ET.Element, name: str) -> Iterator[ET.Element]:
    """Direct children whose local name matches ``name`` (case-insensitive)."""
    wanted = name.lower()
    for child in elem:
        if isinstance(child.tag, str) and local_name(child.tag).lower() == wanted:
            yield child


def descendants(elem: ET.Element, name: str) -> Iterator[ET.Element]:
    """All descendants (document order, excluding ``elem``) matching ``name``."""
    wanted = name.lower()
    for node in elem.iter():
        if node is elem or not isinstance(node.tag, str):
            continue
        if local_name(node.tag).lower() == wanted:
            yield node


def first_child(elem: ET.Element, name: str) -> ET.Element | None:
    return next(children(elem, name), None)


def first_descendant(elem: ET.Element, name: str) -> ET.Element | None:
    return next(descendants(elem, name), None)


def text_of(elem: ET.Element | None) -> str:
    """All nested text of an element, whitespace-stripped."""
    if elem is None:
        return ""
    return "".join(elem.itertext()).strip()


def attr(elem: ET.Element, *names: str, default: str | None = None) -> str | None:
    """First attribute present among ``names``, matched by local name.

    Example:
        ``attr(item, "isvisible")`` finds ``isvisible`` and
        ``{http://www.adlnet.org/xsd/adlcp_rootv1p2}isvisible`` alike.
    """
    by_local = {local_name(key).lower(): value for key, value in elem.attrib.items()}
    for name in names:
        value = by_local.get(name.lower())
        if value is not None:
            return value
    return default
