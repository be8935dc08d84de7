"""Parcel extraction activity.

Turns the features of a ``GeoDocument`` into canonical ``ParcelRecord``
objects, strictly in document order:

1. Features without geometry are skipped with a warning.
2. A markup ``description`` is unpacked and merged into the property bag.
3. Canonical fields are resolved through the field catalog.
4. The per-project parcel quota is applied; every feature beyond the
   limit gets its own error.

Sequence numbers are ``max existing sequence + position in document``
(1-based). Every position consumes its slot, including skipped, failed
and quota-blocked features, so numbering depends only on document order.

One bad feature never stops the batch: any per-feature failure becomes
``"Feature {n}: Failed to process"`` and processing continues.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from parcel_import.activities.resolve_attributes import ResolvedAttributes, resolve_attributes
from parcel_import.activities.unpack_description import enrich_properties
from parcel_import.core.config import DEFAULT_FEATURE_SAMPLE_CHARS
from parcel_import.core.diagnostics import (
    FeatureEvent,
    FeatureOutcome,
    log_feature_event,
    log_property_sample,
)
from parcel_import.core.exceptions import PermanentError
from parcel_import.models.catalog import FieldCatalog, ImportProfile, default_field_catalog
from parcel_import.models.feature import GeoFeature
from parcel_import.models.parcel import ParcelRecord
from parcel_import.models.quota import QuotaState

logger = logging.getLogger("parcel_import.activities.extract_parcels")


class ExtractionError(PermanentError):
    """Raised when a single feature cannot be turned into a parcel record."""

    default_stage = "extract_parcels"
    default_code = "FEATURE_EXTRACTION_FAILED"


@dataclass(slots=True)
class ExtractionBatch:
    """Accumulated result of extracting every feature of a document."""

    records: list[ParcelRecord] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    events: list[FeatureEvent] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class _Extraction:
    record: ParcelRecord
    attributes: ResolvedAttributes
    property_keys: tuple[str, ...]
    description_keys: int


# ---------------------------------------------------------------------------
# Single feature
# ---------------------------------------------------------------------------


def extract_parcel(
    feature: GeoFeature,
    project_id: str,
    sequence: int,
    *,
    catalog: FieldCatalog | None = None,
    profile: ImportProfile | None = None,
) -> ParcelRecord:
    """Build the canonical parcel record for one feature.

    Raises:
        ExtractionError: If the feature has no usable geometry or the
            record cannot be built.
    """
    catalog = catalog or default_field_catalog()
    return _extract(feature, project_id, sequence, catalog, profile).record


def check_geometry(geometry: Any) -> None:
    """Confirm *geometry* is a recognisable GeoJSON geometry.

    The geometry is only interpreted, never modified or repaired.

    Raises:
        ExtractionError: If shapely cannot interpret the geometry.
    """
    from shapely.errors import ShapelyError
    from shapely.geometry import shape

    if not isinstance(geometry, dict) or not geometry.get("type"):
        msg = f"Geometry must be a GeoJSON object with a type, got {type(geometry).__name__}"
        raise ExtractionError(msg)
    try:
        shape(geometry)
    except (ShapelyError, ValueError, TypeError, IndexError, KeyError, AttributeError) as exc:
        msg = f"Unresolvable {geometry.get('type')} geometry: {exc}"
        raise ExtractionError(msg) from exc


def _extract(
    feature: GeoFeature,
    project_id: str,
    sequence: int,
    catalog: FieldCatalog,
    profile: ImportProfile | None,
) -> _Extraction:
    if feature.geometry is None:
        msg = "Feature has no geometry"
        raise ExtractionError(msg)
    check_geometry(feature.geometry)

    properties, unpacked = enrich_properties(feature.properties, profile)
    attributes = resolve_attributes(properties, catalog, profile)

    try:
        record = ParcelRecord(
            project_id=project_id,
            sequence=sequence,
            geometry=feature.geometry,
            parcel_number=attributes.parcel_number,
            pin=attributes.pin,
            owner=attributes.owner,
            owner_address=attributes.owner_address,
            owner_city=attributes.owner_city,
            owner_state=attributes.owner_state,
            owner_zip=attributes.owner_zip,
            legal_desc=attributes.legal_desc,
            county=attributes.county,
            acreage=attributes.acreage,
        )
    except ValueError as exc:
        msg = f"Cannot build parcel record: {exc}"
        raise ExtractionError(msg) from exc

    return _Extraction(
        record=record,
        attributes=attributes,
        property_keys=tuple(properties),
        description_keys=len(unpacked),
    )


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


def extract_parcels(
    features: Sequence[Any],
    project_id: str,
    quota: QuotaState,
    *,
    catalog: FieldCatalog | None = None,
    profile: ImportProfile | None = None,
    import_id: str = "",
    sample_chars: int = DEFAULT_FEATURE_SAMPLE_CHARS,
) -> ExtractionBatch:
    """Extract parcel records from every feature, in document order.

    Args:
        features: Raw GeoJSON feature objects or ``GeoFeature`` instances.
        project_id: Project the records belong to.
        quota: Existing parcel count, limit, tier and max sequence, read
            once for the whole batch.
        catalog: Field catalog (packaged default when ``None``).
        profile: Import profile (catalog ``default`` when ``None``).
        import_id: Request identifier for diagnostics.
        sample_chars: Length of the DEBUG raw-properties sample.

    Returns:
        An ``ExtractionBatch`` with records, warnings, errors and one
        ``FeatureEvent`` per feature.
    """
    catalog = catalog or default_field_catalog()
    profile = profile or catalog.profile(None)
    batch = ExtractionBatch()

    for number, raw in enumerate(features, start=1):
        sequence = quota.max_sequence + number

        if _raw_geometry(raw) is None and isinstance(raw, dict | GeoFeature):
            message = f"Feature {number}: No geometry found, skipped"
            batch.warnings.append(message)
            _record_event(
                batch,
                import_id,
                number,
                sequence,
                FeatureOutcome.SKIPPED_NO_GEOMETRY,
                message=message,
            )
            continue

        try:
            feature = raw if isinstance(raw, GeoFeature) else GeoFeature.from_dict(raw)
            log_property_sample(import_id, number, feature.properties, sample_chars)
            extraction = _extract(feature, project_id, sequence, catalog, profile)
        except (ExtractionError, TypeError) as exc:
            logger.warning(
                "Feature extraction failed | import_id=%s | feature=%d | error=%s",
                import_id,
                number,
                exc,
            )
            _fail(batch, import_id, number, sequence)
            continue
        except Exception:
            logger.exception(
                "Unexpected feature extraction failure | import_id=%s | feature=%d",
                import_id,
                number,
            )
            _fail(batch, import_id, number, sequence)
            continue

        if not quota.allows(len(batch.records)):
            message = (
                f"Feature {number}: Parcel limit reached. Your {quota.tier} plan allows "
                f"{quota.limit} parcels per project."
            )
            batch.errors.append(message)
            _record_event(
                batch,
                import_id,
                number,
                sequence,
                FeatureOutcome.QUOTA_EXCEEDED,
                extraction=extraction,
                message=message,
            )
            continue

        batch.records.append(extraction.record)
        _record_event(
            batch, import_id, number, sequence, FeatureOutcome.EXTRACTED, extraction=extraction
        )

    logger.info(
        "Extraction finished | import_id=%s | features=%d | records=%d | warnings=%d | errors=%d",
        import_id,
        len(features),
        len(batch.records),
        len(batch.warnings),
        len(batch.errors),
    )
    return batch


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _raw_geometry(raw: Any) -> Any:
    if isinstance(raw, GeoFeature):
        return raw.geometry
    if isinstance(raw, dict):
        return raw.get("geometry") or None
    return None


def _fail(batch: ExtractionBatch, import_id: str, number: int, sequence: int) -> None:
    message = f"Feature {number}: Failed to process"
    batch.errors.append(message)
    _record_event(batch, import_id, number, sequence, FeatureOutcome.FAILED, message=message)


def _record_event(
    batch: ExtractionBatch,
    import_id: str,
    number: int,
    sequence: int,
    outcome: FeatureOutcome,
    *,
    extraction: _Extraction | None = None,
    message: str = "",
) -> None:
    event = FeatureEvent(
        import_id=import_id,
        feature_number=number,
        sequence=sequence,
        outcome=outcome,
        property_keys=extraction.property_keys if extraction else (),
        resolved=dict(extraction.attributes.sources) if extraction else {},
        unresolved=extraction.attributes.unresolved if extraction else (),
        description_keys=extraction.description_keys if extraction else 0,
        message=message,
    )
    batch.events.append(event)
    log_feature_event(event)
