"""Field catalog: canonical parcel field → ordered candidate names.

The catalog is data, not code. It is loaded from YAML (the packaged
``field_catalog.yaml`` unless a path is configured) and validated once.
Import profiles adjust behaviour per source family: which side wins
when declared properties and HTML-description properties collide, and
extra candidate names tried before the global list.
"""

from __future__ import annotations

import enum
import functools
import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

from parcel_import.core.exceptions import ParcelImportError

logger = logging.getLogger("parcel_import.models.catalog")

DEFAULT_PROFILE = "default"

#: Every field the resolver asks the catalog for, in resolution order.
CANONICAL_FIELDS: tuple[str, ...] = (
    "parcel_number",
    "pin",
    "owner",
    "owner_address",
    "owner_city",
    "owner_state",
    "owner_zip",
    "county",
    "acreage",
    "property_location",
    "legal_description",
    "property_class",
    "pin_rpc",
    "deed_book",
)

#: Fields concatenated, in this order, into ``legal_desc``.
LEGAL_DESC_PARTS: tuple[str, ...] = (
    "property_location",
    "legal_description",
    "property_class",
    "pin_rpc",
    "deed_book",
)


class CatalogError(ParcelImportError):
    """Raised when a field catalog file is missing or malformed."""

    default_stage = "config"
    default_code = "FIELD_CATALOG_INVALID"


class DescriptionPrecedence(enum.Enum):
    """Which property source wins when a key exists in both.

    Values:
        DECLARED:    Properties declared on the feature win; the HTML
                     description only fills gaps.
        DESCRIPTION: Keys unpacked from the HTML description win.
    """

    DECLARED = "declared"
    DESCRIPTION = "description"


@dataclass(frozen=True, slots=True)
class ImportProfile:
    """Per-source-family import behaviour.

    Attributes:
        name: Profile name as referenced by requests and configuration.
        description_precedence: Merge direction for HTML-description keys.
        extra_candidates: Per-field names tried before the global catalog.
    """

    name: str = DEFAULT_PROFILE
    description_precedence: DescriptionPrecedence = DescriptionPrecedence.DECLARED
    extra_candidates: dict[str, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class FieldCatalog:
    """Validated candidate-name catalog plus its import profiles."""

    fields: dict[str, tuple[str, ...]]
    profiles: dict[str, ImportProfile]

    def candidates(self, field_name: str, profile: ImportProfile | None = None) -> tuple[str, ...]:
        """Ordered candidate names for *field_name* under *profile*.

        Profile-specific names come first; duplicates keep their first
        position.
        """
        base = self.fields.get(field_name, ())
        if profile is None or field_name not in profile.extra_candidates:
            return base
        return tuple(dict.fromkeys((*profile.extra_candidates[field_name], *base)))

    def profile(self, name: str | None) -> ImportProfile:
        """Look up a profile by name (``None`` or empty means ``default``).

        Raises:
            CatalogError: If the profile is not defined.
        """
        key = name or DEFAULT_PROFILE
        try:
            return self.profiles[key]
        except KeyError:
            known = ", ".join(sorted(self.profiles))
            msg = f"Unknown import profile {key!r}; known profiles: {known}"
            raise CatalogError(msg, code="UNKNOWN_IMPORT_PROFILE") from None

    @classmethod
    def from_dict(cls, data: object, *, source: str = "<dict>") -> FieldCatalog:
        """Validate and build a catalog from parsed YAML.

        Raises:
            CatalogError: If required fields are missing or malformed.
        """
        if not isinstance(data, dict):
            msg = f"Field catalog {source} must be a mapping, got {type(data).__name__}"
            raise CatalogError(msg)

        raw_fields = data.get("fields")
        if not isinstance(raw_fields, dict):
            msg = f"Field catalog {source} has no 'fields' mapping"
            raise CatalogError(msg)

        fields = {
            name: _name_list(raw_fields.get(name), f"{source}: fields.{name}")
            for name in CANONICAL_FIELDS
        }
        unknown = set(raw_fields) - set(CANONICAL_FIELDS)
        if unknown:
            logger.warning(
                "Ignoring unknown catalog field(s) | source=%s | fields=%s",
                source,
                ", ".join(sorted(unknown)),
            )

        raw_profiles = data.get("profiles") or {DEFAULT_PROFILE: {}}
        if not isinstance(raw_profiles, dict):
            msg = f"Field catalog {source}: 'profiles' must be a mapping"
            raise CatalogError(msg)

        profiles = {
            str(name): _build_profile(str(name), body, source)
            for name, body in raw_profiles.items()
        }
        if DEFAULT_PROFILE not in profiles:
            msg = f"Field catalog {source} does not define the '{DEFAULT_PROFILE}' profile"
            raise CatalogError(msg)

        return cls(fields=fields, profiles=profiles)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_field_catalog(path: Path | str | None = None) -> FieldCatalog:
    """Load a field catalog from *path*, or the packaged default.

    Raises:
        CatalogError: If the file cannot be read or parsed, or fails validation.
    """
    if not path:
        return default_field_catalog()

    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read field catalog {path}: {exc}"
        raise CatalogError(msg) from exc

    return _parse(text, str(path))


@functools.lru_cache(maxsize=1)
def default_field_catalog() -> FieldCatalog:
    """The catalog shipped with the package (parsed once per process)."""
    text = resources.files("parcel_import").joinpath("data/field_catalog.yaml").read_text(
        encoding="utf-8"
    )
    return _parse(text, "field_catalog.yaml")


def _parse(text: str, source: str) -> FieldCatalog:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        msg = f"Field catalog {source} is not valid YAML: {exc}"
        raise CatalogError(msg) from exc
    catalog = FieldCatalog.from_dict(data, source=source)
    logger.info(
        "Field catalog loaded | source=%s | fields=%d | profiles=%s",
        source,
        len(catalog.fields),
        ",".join(sorted(catalog.profiles)),
    )
    return catalog


def _name_list(raw: object, where: str) -> tuple[str, ...]:
    if not isinstance(raw, list) or not raw:
        msg = f"{where} must be a non-empty list of property names"
        raise CatalogError(msg)
    names: list[str] = []
    for item in raw:
        if not isinstance(item, str) or not item.strip():
            msg = f"{where} contains an invalid property name: {item!r}"
            raise CatalogError(msg)
        names.append(item)
    return tuple(names)


def _build_profile(name: str, body: Any, source: str) -> ImportProfile:
    body = body or {}
    if not isinstance(body, dict):
        msg = f"Field catalog {source}: profile {name!r} must be a mapping"
        raise CatalogError(msg)

    raw_precedence = str(body.get("description_precedence", DescriptionPrecedence.DECLARED.value))
    try:
        precedence = DescriptionPrecedence(raw_precedence)
    except ValueError:
        msg = (
            f"Field catalog {source}: profile {name!r} has invalid description_precedence "
            f"{raw_precedence!r} (expected 'declared' or 'description')"
        )
        raise CatalogError(msg) from None

    raw_extra = body.get("fields") or {}
    if not isinstance(raw_extra, dict):
        msg = f"Field catalog {source}: profile {name!r} 'fields' must be a mapping"
        raise CatalogError(msg)
    extra = {
        str(field_name): _name_list(names, f"{source}: profiles.{name}.fields.{field_name}")
        for field_name, names in raw_extra.items()
    }

    return ImportProfile(name=name, description_precedence=precedence, extra_candidates=extra)
