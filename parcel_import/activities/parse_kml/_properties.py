"""Placemark property flattening for KML translation.

Responsibilities:
- Copy simple Placemark children (``name``, ``address``...) into the bag
- Preserve ``description`` markup so the HTML unpacker can read it
- Flatten ``ExtendedData`` (typed and untyped) into the bag

This is where county-specific field names enter the pipeline.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from parcel_import.activities.parse_kml._constants import (
    DESCRIPTION,
    EXTENDED_DATA,
    SIMPLE_PROPERTY_ELEMENTS,
)
from parcel_import.activities.parse_kml._validation import local_name

if TYPE_CHECKING:
    from lxml.etree import _Element


def placemark_properties(placemark: _Element) -> dict[str, str]:
    """Flatten a Placemark's descriptive children into a property bag."""
    properties: dict[str, str] = {}

    for child in placemark:
        name = local_name(child)
        if name in SIMPLE_PROPERTY_ELEMENTS:
            text = (child.text or "").strip()
            if text:
                properties[name] = text
        elif name == DESCRIPTION:
            markup = inner_markup(child).strip()
            if markup:
                properties[DESCRIPTION] = markup

    for child in placemark:
        if local_name(child) == EXTENDED_DATA:
            properties.update(extract_extended_data(child))

    return properties


def extract_extended_data(extended_data: _Element) -> dict[str, str]:
    """Extract metadata from an ``ExtendedData`` element.

    Handles both KML metadata patterns:
    - ``Data/value``: untyped key-value pairs.
    - ``SchemaData/SimpleData``: typed fields defined by a ``<Schema>``.
    """
    metadata: dict[str, str] = {}

    for child in extended_data:
        kind = local_name(child)
        if kind == "Data":
            key = child.get("name", "")
            value = next((v for v in child if local_name(v) == "value"), None)
            if key and value is not None and value.text and value.text.strip():
                metadata[key] = value.text.strip()
        elif kind == "SchemaData":
            for simple_data in child:
                if local_name(simple_data) != "SimpleData":
                    continue
                key = simple_data.get("name", "")
                if key and simple_data.text and simple_data.text.strip():
                    metadata[key] = simple_data.text.strip()

    return metadata


def inner_markup(elem: _Element) -> str:
    """Text plus serialized child elements of *elem*.

    CDATA and entity-escaped HTML arrive as ``elem.text``; XHTML written
    directly inside ``<description>`` arrives as child elements.
    """
    from lxml import etree  # type: ignore[attr-defined]

    parts = [elem.text or ""]
    parts.extend(etree.tostring(child, encoding="unicode", with_tail=True) for child in elem)
    return "".join(parts)
