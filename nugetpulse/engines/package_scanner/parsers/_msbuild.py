"""XML helpers shared by the MSBuild-style manifest parsers."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterator
from pathlib import Path

from nugetpulse.exceptions import ManifestParseError


def parse_xml(file_path: Path, content: str) -> ET.Element:
    """Parse *content* into an element tree, raising ManifestParseError."""
    try:
        return ET.fromstring(content.lstrip("\ufeff"))
    except ET.ParseError as exc:
        raise ManifestParseError(str(file_path), str(exc)) from exc


def local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix from an element tag."""
    return tag.rsplit("}", 1)[-1]


def iter_local(root: ET.Element, name: str) -> Iterator[ET.Element]:
    """Yield descendants whose tag is *name*, ignoring namespaces.

    Legacy project files use the msbuild/2003 namespace, SDK-style ones none.
    """
    for el in root.iter():
        if isinstance(el.tag, str) and local_name(el.tag) == name:
            yield el


def child_text(element: ET.Element, name: str) -> str | None:
    for child in element:
        if local_name(child.tag) == name and child.text and child.text.strip():
            return child.text.strip()
    return None


def attr(element: ET.Element, name: str) -> str | None:
    value = element.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()
