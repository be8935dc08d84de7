"""In-memory implementation of both store contracts.

Used by the test suite and by the Functions app when no database-backed
store is wired in. Thread-safe; enforces that a sequence number is used
at most once per project, which is the invariant a database unique
index would guard.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import TYPE_CHECKING

from parcel_import.models.quota import Project, SubscriptionLimits
from parcel_import.stores.base import ParcelStore, PersistenceError, ProjectStore

if TYPE_CHECKING:
    from parcel_import.models.parcel import ParcelRecord

logger = logging.getLogger("parcel_import.stores.memory")


class InMemoryParcelRepository(ProjectStore, ParcelStore):
    """Projects, subscriptions and parcels held in process memory."""

    def __init__(self) -> None:
        self._projects: dict[str, Project] = {}
        self._subscriptions: dict[str, SubscriptionLimits] = {}
        self._parcels: dict[str, list[ParcelRecord]] = defaultdict(list)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def add_project(self, project_id: str, owner_id: str, name: str = "") -> Project:
        project = Project(project_id=project_id, owner_id=owner_id, name=name)
        with self._lock:
            self._projects[project_id] = project
        return project

    def set_subscription(self, owner_id: str, limits: SubscriptionLimits) -> None:
        with self._lock:
            self._subscriptions[owner_id] = limits

    def parcels_for(self, project_id: str) -> list[ParcelRecord]:
        with self._lock:
            return list(self._parcels.get(project_id, []))

    # ------------------------------------------------------------------
    # ProjectStore
    # ------------------------------------------------------------------

    def get_project_with_parcel_count(self, project_id: str, owner_id: str) -> Project | None:
        with self._lock:
            project = self._projects.get(project_id)
            if project is None or project.owner_id != owner_id:
                return None
            parcels = self._parcels.get(project_id, [])
            return Project(
                project_id=project.project_id,
                owner_id=project.owner_id,
                name=project.name,
                parcel_count=len(parcels),
                max_sequence=max((p.sequence for p in parcels), default=0),
            )

    def get_subscription_limits(self, owner_id: str) -> SubscriptionLimits | None:
        with self._lock:
            return self._subscriptions.get(owner_id)

    # ------------------------------------------------------------------
    # ParcelStore
    # ------------------------------------------------------------------

    def create_parcel(self, record: ParcelRecord) -> None:
        with self._lock:
            if record.project_id not in self._projects:
                msg = f"Unknown project {record.project_id!r}"
                raise PersistenceError(msg, sequence=record.sequence)
            existing = self._parcels[record.project_id]
            if any(p.sequence == record.sequence for p in existing):
                msg = (
                    f"Sequence {record.sequence} already used in project {record.project_id!r}"
                )
                raise PersistenceError(msg, sequence=record.sequence, code="DUPLICATE_SEQUENCE")
            existing.append(record)
        logger.debug(
            "Parcel stored | project=%s | sequence=%d",
            record.project_id,
            record.sequence,
        )
