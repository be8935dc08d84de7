"""Canonical parcel record produced by the extraction pipeline.

Every importer, whatever the source schema, reduces a feature to a
``ParcelRecord``. The surrounding application owns the record after it
is persisted; in particular ``status`` is only ever set to its default
here and is changed later by users working the right-of-way.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class ParcelStatus(enum.Enum):
    """Acquisition lifecycle of a parcel.

    Values:
        NOT_STARTED: Default for every imported parcel.
        IN_PROGRESS: Negotiation under way.
        ACQUIRED:    Right-of-way obtained.
        CONDEMNED:   Taken through condemnation.
        RELOCATED:   Occupants relocated.
    """

    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    ACQUIRED = "ACQUIRED"
    CONDEMNED = "CONDEMNED"
    RELOCATED = "RELOCATED"


@dataclass(frozen=True, slots=True)
class ParcelRecord:
    """A normalized parcel ready to be written to the parcel store.

    Attributes:
        project_id: Owning project. Assigned at creation, never changed.
        sequence: Positive ordinal within the project (corridor order).
        geometry: GeoJSON geometry, carried through unchanged.
        parcel_number: Tax-map identifier.
        pin: Assessor identifier (may coincide with ``parcel_number``).
        owner: Owner name.
        owner_address: Mailing address as found in the source.
        owner_city: Mailing city.
        owner_state: Mailing state (2-letter where the source provides it).
        owner_zip: Mailing ZIP code.
        legal_desc: Legal description assembled from several source fields.
        county: County name, without any trailing state.
        acreage: Area in acres, ``>= 0`` when present.
        status: Lifecycle status, ``NOT_STARTED`` on import.
    """

    project_id: str
    sequence: int
    geometry: dict[str, Any] = field(default_factory=dict)
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
    status: ParcelStatus = ParcelStatus.NOT_STARTED

    def __post_init__(self) -> None:
        if not self.project_id:
            msg = "ParcelRecord.project_id must not be empty"
            raise ValueError(msg)
        if self.sequence < 1:
            msg = f"ParcelRecord.sequence must be positive, got {self.sequence}"
            raise ValueError(msg)
        if self.acreage is not None and self.acreage < 0:
            msg = f"ParcelRecord.acreage must be >= 0, got {self.acreage}"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialise with the parcel store's camelCase column names."""
        return {
            "projectId": self.project_id,
            "parcelNumber": self.parcel_number,
            "pin": self.pin,
            "owner": self.owner,
            "ownerAddress": self.owner_address,
            "ownerCity": self.owner_city,
            "ownerState": self.owner_state,
            "ownerZip": self.owner_zip,
            "legalDesc": self.legal_desc,
            "county": self.county,
            "acreage": self.acreage,
            "sequence": self.sequence,
            "geometry": self.geometry,
            "status": self.status.value,
        }
