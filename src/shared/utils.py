"""Shared utility functions."""
from __future__ import annotations

import xml.etree.ElementTree as ET


def local_name(tag: str) -> str:
    """Strip an ``{namespace}`` prefix from an ElementTree tag."""
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def child_text(element: ET.Element, name: str) -> str | None:
    """Return the text of the first child named *name*, ignoring namespaces.

    Returns ``None`` if there is no such child and ``""`` for an empty one.
    """
    for child in element:
        if local_name(child.tag) == name:
            return (child.text or "").strip()
    return None


def iter_named(root: ET.Element, name: str):
    """Yield every descendant of *root* named *name*, in document order."""
    for element in root.iter():
        if local_name(element.tag) == name:
            yield element
