"""Abstract store contracts.

The orchestrator interacts exclusively with these interfaces; it never
knows which persistence engine is behind them.

Lifecycle of one import:
    1. ``get_project_with_parcel_count(project_id, owner_id)``: ownership
       check plus the quota and sequence snapshot.
    2. ``get_subscription_limits(owner_id)``: plan tier and parcel limit.
    3. ``create_parcel(record)``: once per extracted record.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

from parcel_import.core.exceptions import TransientError

if TYPE_CHECKING:
    from parcel_import.models.parcel import ParcelRecord
    from parcel_import.models.quota import Project, SubscriptionLimits


class PersistenceError(TransientError):
    """Raised when the store rejects or fails to write a single record.

    Attributes:
        sequence: Sequence of the record that could not be written.
    """

    default_stage = "persist"
    default_code = "PARCEL_CREATE_FAILED"

    def __init__(self, message: str = "", *, sequence: int | None = None, **kwargs: object) -> None:
        self.sequence = sequence
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ProjectStore(abc.ABC):
    """Read side: project ownership, existing parcels, plan limits."""

    @abc.abstractmethod
    def get_project_with_parcel_count(self, project_id: str, owner_id: str) -> Project | None:
        """Return the project if it exists and belongs to *owner_id*.

        The returned ``Project`` carries the current parcel count and the
        highest existing sequence. ``None`` means not found or not owned.
        """

    @abc.abstractmethod
    def get_subscription_limits(self, owner_id: str) -> SubscriptionLimits | None:
        """Return the caller's plan limits, or ``None`` with no subscription."""


class ParcelStore(abc.ABC):
    """Write side: parcel creation."""

    @abc.abstractmethod
    def create_parcel(self, record: ParcelRecord) -> None:
        """Persist one parcel record.

        Raises:
            PersistenceError: If the store rejects or fails to write the
                record. Implementations must wrap engine-specific errors.
        """
