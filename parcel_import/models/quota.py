"""Quota inputs: the target project and the caller's plan limits."""

from __future__ import annotations

from dataclasses import dataclass

from parcel_import.core.constants import SUBSCRIPTION_TIER_PARCEL_LIMITS, UNLIMITED


@dataclass(frozen=True, slots=True)
class Project:
    """A project as seen by the importer.

    Attributes:
        project_id: Project identifier.
        owner_id: Identifier of the owning user.
        name: Display name.
        parcel_count: Parcels already in the project.
        max_sequence: Highest ``sequence`` among existing parcels (0 if none).
    """

    project_id: str
    owner_id: str
    name: str = ""
    parcel_count: int = 0
    max_sequence: int = 0


@dataclass(frozen=True, slots=True)
class SubscriptionLimits:
    """Plan limits for a subscriber.

    Attributes:
        tier: Plan tier name (``FREE``, ``BASIC``, ``PRO``, ``ENTERPRISE``).
        parcel_limit_per_project: Max parcels per project, ``-1`` for unlimited.
    """

    tier: str
    parcel_limit_per_project: int

    @classmethod
    def for_tier(cls, tier: str) -> SubscriptionLimits:
        """Return the standard limits for a plan tier.

        Raises:
            KeyError: If *tier* is not a known plan.
        """
        key = tier.upper()
        return cls(tier=key, parcel_limit_per_project=SUBSCRIPTION_TIER_PARCEL_LIMITS[key])


@dataclass(frozen=True, slots=True)
class QuotaState:
    """Snapshot read once at the start of an import batch.

    Attributes:
        used: Parcels already in the project.
        limit: Parcel limit for the project, ``-1`` for unlimited.
        tier: Plan tier name, used in quota messages.
        max_sequence: Highest existing sequence in the project.
    """

    used: int = 0
    limit: int = UNLIMITED
    tier: str = "FREE"
    max_sequence: int = 0

    @property
    def unlimited(self) -> bool:
        return self.limit == UNLIMITED

    def allows(self, pending: int) -> bool:
        """Whether one more parcel fits after *pending* already accepted ones."""
        if self.unlimited:
            return True
        return self.used + pending < self.limit

    @classmethod
    def for_project(cls, project: Project, limits: SubscriptionLimits) -> QuotaState:
        return cls(
            used=project.parcel_count,
            limit=limits.parcel_limit_per_project,
            tier=limits.tier,
            max_sequence=project.max_sequence,
        )
