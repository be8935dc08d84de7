"""Attribute resolution activity.

Every county export names its columns differently (``OWNER1``,
``OwnerName``, ``PROP_OWNER``...). ``find_prop`` tries a caller-supplied,
ordered list of candidate names against a feature's property bag, exact
match first and then case-insensitively, and accepts the first value
that is present and non-empty.

``resolve_attributes`` runs ``find_prop`` for every canonical field with
the candidate lists from the field catalog, then layers the derived-field
rules on top:

- county/state split (``"Bedford County, VA"``)
- mailing-address parse (``"... LYNCHBURG, VA 24505"``)
- legal-description assembly from several labelled parts
- lenient acreage parsing
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from parcel_import.activities.unpack_description import DESCRIPTION_KEY, looks_like_markup
from parcel_import.core.constants import LEGAL_DESC_SEPARATOR
from parcel_import.models.catalog import (
    CANONICAL_FIELDS,
    LEGAL_DESC_PARTS,
    FieldCatalog,
    ImportProfile,
)

# City, 2-letter state and 5-digit ZIP (optional +4) at the end of an address.
_ADDRESS_TAIL = re.compile(r",?\s*([A-Z\s]+),?\s+([A-Z]{2})\s+(\d{5})(?:-\d{4})?\s*$")

# Leading decimal number, as a spreadsheet would read "12.5 AC".
_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


@dataclass(frozen=True, slots=True)
class MailingAddress:
    """City/state/ZIP recovered from the tail of a one-line address."""

    city: str
    state: str
    zip_code: str


@dataclass(frozen=True, slots=True)
class ResolvedAttributes:
    """Canonical field values resolved from one feature's properties.

    ``sources`` maps each resolved catalog field to the property key that
    supplied it; ``unresolved`` lists catalog fields nothing matched.
    """

    parcel_number: str | None = None
    pin: str | None = None
    owner: str | None = None
    owner_address: str | None = None
    owner_city: str | None = None
    owner_state: str | None = None
    owner_zip: str | None = None
    legal_desc: str | None = None
    county: str | None = None
    acreage: float | None = None
    sources: dict[str, str] = field(default_factory=dict)
    unresolved: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Plain resolution
# ---------------------------------------------------------------------------


def match_prop(properties: Mapping[str, Any], names: Iterable[str]) -> tuple[str, Any] | None:
    """Return ``(key, value)`` for the first candidate name that resolves.

    Each candidate is tried as an exact key, then as the first key (in
    iteration order) equal to it ignoring case. A value is accepted only if
    it is not ``None`` and not the empty string; otherwise the next
    candidate is tried.
    """
    for name in names:
        if _usable(properties.get(name)):
            return name, properties[name]

        lowered = name.lower()
        key = next((k for k in properties if k.lower() == lowered), None)
        if key is not None and _usable(properties[key]):
            return key, properties[key]
    return None


def find_prop(properties: Mapping[str, Any], *names: str) -> Any:
    """Value of the first candidate name that resolves, else ``None``."""
    match = match_prop(properties, names)
    return match[1] if match else None


# ---------------------------------------------------------------------------
# Derived-field rules
# ---------------------------------------------------------------------------


def split_county_state(value: str) -> tuple[str | None, str | None]:
    """Split ``"Bedford County, VA"`` into ``("Bedford County", "VA")``.

    Values without a comma are returned whole with no state.
    """
    if "," not in value:
        return value.strip() or None, None
    county, state = value.split(",", 1)
    return county.strip() or None, state.strip() or None


def parse_mailing_address(value: str) -> MailingAddress | None:
    """Recover city/state/ZIP from the end of a one-line mailing address."""
    match = _ADDRESS_TAIL.search(value)
    if match is None:
        return None
    city = match.group(1).strip()
    if not city:
        return None
    return MailingAddress(city=city, state=match.group(2), zip_code=match.group(3))


def assemble_legal_description(parts: Iterable[str | None]) -> str | None:
    """Join the present parts with ``" | "``; ``None`` if none are present."""
    present = [part for part in parts if part]
    return LEGAL_DESC_SEPARATOR.join(present) if present else None


def parse_acreage(value: Any) -> float | None:
    """Parse an acreage value leniently.

    ``12.5``, ``"12.5"``, ``"1,204.75"`` and ``"12.5 AC"`` all parse;
    anything non-numeric, negative or non-finite yields ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    else:
        match = _LEADING_NUMBER.match(str(value).replace(",", ""))
        if match is None:
            return None
        number = float(match.group(1))
    if not math.isfinite(number) or number < 0:
        return None
    return number


# ---------------------------------------------------------------------------
# Full resolution
# ---------------------------------------------------------------------------


def resolve_attributes(
    properties: Mapping[str, Any],
    catalog: FieldCatalog,
    profile: ImportProfile | None = None,
) -> ResolvedAttributes:
    """Resolve every canonical parcel field from a feature's property bag."""
    matches = {
        name: match_prop(properties, catalog.candidates(name, profile))
        for name in CANONICAL_FIELDS
    }
    legal = matches["legal_description"]
    if legal and legal[0].lower() == DESCRIPTION_KEY and looks_like_markup(legal[1]):
        matches["legal_description"] = None

    def text(name: str) -> str | None:
        match = matches[name]
        return as_text(match[1]) if match else None

    county, county_state = (None, None)
    if (county_raw := text("county")) is not None:
        county, county_state = split_county_state(county_raw)

    address = text("owner_address")
    city, state, zip_code = text("owner_city"), text("owner_state"), text("owner_zip")
    parsed = parse_mailing_address(address) if address else None
    if parsed is not None:
        city, state, zip_code = parsed.city, parsed.state, parsed.zip_code
    if state is None:
        state = county_state

    acreage_match = matches["acreage"]

    return ResolvedAttributes(
        parcel_number=text("parcel_number"),
        pin=text("pin"),
        owner=text("owner"),
        owner_address=address,
        owner_city=city,
        owner_state=state,
        owner_zip=zip_code,
        legal_desc=assemble_legal_description(text(part) for part in LEGAL_DESC_PARTS),
        county=county,
        acreage=parse_acreage(acreage_match[1]) if acreage_match else None,
        sources={name: match[0] for name, match in matches.items() if match},
        unresolved=tuple(name for name, match in matches.items() if not match),
    )


def as_text(value: Any) -> str | None:
    """Render a property value as trimmed text (``None`` if blank).

    Whole floats lose their ``.0`` so numeric parcel ids stay readable.
    """
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _usable(value: Any) -> bool:
    return value is not None and value != ""
