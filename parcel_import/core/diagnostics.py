"""Structured per-feature import diagnostics.

When a county's data does not map, the question is always the same:
which keys did the feature carry, and which of them (if any) fed each
canonical field? Every processed feature therefore produces exactly one
``FeatureEvent``. It is logged as a pipe-delimited line for humans and
attached to the record as ``extra["feature_event"]`` for log handlers
that index structured fields.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger("parcel_import.core.diagnostics")


class FeatureOutcome(enum.Enum):
    """What happened to one feature."""

    EXTRACTED = "extracted"
    SKIPPED_NO_GEOMETRY = "skipped_no_geometry"
    QUOTA_EXCEEDED = "quota_exceeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class FeatureEvent:
    """Diagnostic record for one feature.

    Attributes:
        import_id: Import request identifier.
        feature_number: 1-based position in the document.
        sequence: Sequence slot assigned to the feature.
        outcome: What the pipeline did with the feature.
        property_keys: Keys present in the (enriched) property bag.
        resolved: Canonical field → source key that supplied it.
        unresolved: Canonical fields no candidate name matched.
        description_keys: Number of keys recovered from an HTML description.
        message: Warning or error text reported for the feature, if any.
    """

    import_id: str
    feature_number: int
    sequence: int
    outcome: FeatureOutcome
    property_keys: tuple[str, ...] = ()
    resolved: dict[str, str] = field(default_factory=dict)
    unresolved: tuple[str, ...] = ()
    description_keys: int = 0
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "import_id": self.import_id,
            "feature_number": self.feature_number,
            "sequence": self.sequence,
            "outcome": self.outcome.value,
            "property_keys": list(self.property_keys),
            "resolved": dict(self.resolved),
            "unresolved": list(self.unresolved),
            "description_keys": self.description_keys,
            "message": self.message,
        }


def log_feature_event(event: FeatureEvent) -> None:
    """Emit one structured log record for *event*."""
    level = logging.INFO if event.outcome is FeatureOutcome.EXTRACTED else logging.WARNING
    logger.log(
        level,
        "Feature processed | import_id=%s | feature=%d | sequence=%d | outcome=%s"
        " | keys=%d | resolved=%s | unresolved=%s | description_keys=%d",
        event.import_id,
        event.feature_number,
        event.sequence,
        event.outcome.value,
        len(event.property_keys),
        ",".join(f"{name}<-{key}" for name, key in event.resolved.items()),
        ",".join(event.unresolved),
        event.description_keys,
        extra={"feature_event": event.to_dict()},
    )


def log_property_sample(
    import_id: str, feature_number: int, properties: dict[str, Any], limit: int
) -> None:
    """Log a truncated JSON sample of a feature's raw properties at DEBUG."""
    if limit <= 0 or not logger.isEnabledFor(logging.DEBUG):
        return
    sample = json.dumps(properties, default=str, ensure_ascii=False)[:limit]
    logger.debug(
        "Feature properties sample | import_id=%s | feature=%d | sample=%s",
        import_id,
        feature_number,
        sample,
    )
