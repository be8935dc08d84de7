"""HTML description unpacking activity.

County GIS viewers commonly export a feature's attributes only as an
HTML table (or a stack of ``Label: value`` divs) inside the KML
``<description>``. This module recovers those key/value pairs so the
attribute resolver can see them alongside the declared properties.

Two extraction strategies run and are merged, first extraction wins:

1. Table rows: each ``<tr>`` with at least two ``<td>`` cells gives
   ``first cell → second cell``.
2. Labels: each ``<div>``/``<span>`` whose text matches
   ``Label: value`` or ``Label=value``. Inner elements are tried first;
   a container counts only when nothing inside it matched.

Unparseable markup degrades to an empty mapping; it never aborts an
import.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from parcel_import.models.catalog import DescriptionPrecedence, ImportProfile

logger = logging.getLogger("parcel_import.activities.unpack_description")

DESCRIPTION_KEY = "description"

_LABEL_PATTERN = re.compile(r"^([^:=]+)[:=]\s*(.+)$")
_LABEL_TAGS = ("div", "span")


def looks_like_markup(value: object) -> bool:
    """Whether a description value is worth handing to the HTML parser."""
    return isinstance(value, str) and ("<" in value or "table" in value)


def find_description(properties: dict[str, Any]) -> str | None:
    """Return the first markup-bearing ``description`` value (any key case)."""
    for key, value in properties.items():
        if key.lower() == DESCRIPTION_KEY and looks_like_markup(value):
            return value
    return None


def unpack_description(html: str) -> dict[str, str]:
    """Extract key/value pairs embedded in an HTML description.

    Returns:
        Mapping of label → value. Empty if nothing was found or the markup
        could not be parsed.
    """
    import lxml.html
    from lxml import etree  # type: ignore[attr-defined]

    try:
        root = lxml.html.fromstring(html)
    except (etree.ParserError, etree.XMLSyntaxError, ValueError) as exc:
        logger.warning("Cannot parse description markup, ignoring it: %s", exc)
        return {}

    pairs: dict[str, str] = {}

    for row in root.iter("tr"):
        cells = row.findall("td")
        if len(cells) < 2:
            continue
        key = _clean(cells[0].text_content()).rstrip(":").rstrip()
        _add(pairs, key, _clean(cells[1].text_content()))

    for match in _label_matches(root):
        _add(pairs, match.group(1).strip(), match.group(2).strip())

    return pairs


def enrich_properties(
    properties: dict[str, Any],
    profile: ImportProfile | None = None,
) -> tuple[dict[str, Any], dict[str, str]]:
    """Merge description-embedded pairs into a feature's property bag.

    Under the ``declared`` precedence (the default) declared properties win
    and description pairs only fill keys that are absent; under
    ``description`` precedence the description pairs win. The merged bag
    iterates winners first, so case-insensitive lookups honour the same
    precedence.

    Returns:
        ``(merged_properties, unpacked_pairs)``. When there is no markup
        description the original bag is returned unchanged.
    """
    html = find_description(properties)
    if html is None:
        return properties, {}

    unpacked = unpack_description(html)
    if not unpacked:
        return properties, unpacked

    precedence = profile.description_precedence if profile else DescriptionPrecedence.DECLARED
    if precedence is DescriptionPrecedence.DESCRIPTION:
        primary, fallback = dict(unpacked), properties
    else:
        primary, fallback = dict(properties), unpacked

    merged: dict[str, Any] = primary
    for key, value in fallback.items():
        merged.setdefault(key, value)
    return merged, unpacked


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _label_matches(root: Any) -> list[re.Match[str]]:
    """Label matches, in document order.

    A container is tested on its own text only when none of its
    ``div``/``span`` descendants matched, so ``<div><span>Owner:</span>
    <span>JANE DOE</span></div>`` still yields ``Owner``.
    """
    elements = list(root.iter(*_LABEL_TAGS))
    matched: dict[Any, re.Match[str]] = {}
    for elem in reversed(elements):
        if any(child in matched for child in elem.iterdescendants(*_LABEL_TAGS)):
            continue
        match = _LABEL_PATTERN.match(_clean(elem.text_content()))
        if match:
            matched[elem] = match
    return [matched[elem] for elem in elements if elem in matched]


def _clean(text: str) -> str:
    return " ".join(text.split())


def _add(pairs: dict[str, str], key: str, value: str) -> None:
    if key and value and key not in pairs:
        pairs[key] = value
