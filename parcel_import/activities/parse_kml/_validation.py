"""XML parsing and root validation for KML translation.

Responsibilities:
- Hardened XML parsing (no entity expansion, no network access)
- Rejecting documents whose root is not ``<kml>``
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from parcel_import.core.exceptions import FormatError

if TYPE_CHECKING:
    from lxml.etree import _Element


class MalformedKmlError(FormatError):
    """Raised when KML text is not well-formed XML or not a KML document."""

    default_stage = "parse_kml"
    default_code = "MALFORMED_KML"


# lxml refuses ``str`` input that carries an encoding declaration; the text
# is already decoded, so the declaration is dropped before parsing.
_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")


def parse_kml_root(kml_text: str) -> _Element:
    """Parse KML text and return the ``<kml>`` root element.

    Raises:
        MalformedKmlError: If the text is empty, not valid XML, or its root
            element is not ``kml``.
    """
    from lxml import etree  # type: ignore[attr-defined]

    if not kml_text.strip():
        msg = "KML document is empty"
        raise MalformedKmlError(msg)

    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    try:
        root = etree.fromstring(_XML_DECLARATION.sub("", kml_text, count=1), parser=parser)
    except etree.XMLSyntaxError as exc:
        msg = f"Not valid XML: {exc}"
        raise MalformedKmlError(msg) from exc

    if local_name(root) != "kml":
        msg = f"Not a KML document: root element is <{local_name(root)}>"
        raise MalformedKmlError(msg)

    return root


def local_name(elem: _Element) -> str:
    """Tag name without namespace (``""`` for comments and PIs)."""
    tag = elem.tag
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]
