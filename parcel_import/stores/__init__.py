"""Store collaborators consumed by the importer.

The importer never talks to a database directly. It reads project and
quota state through ``ProjectStore`` and writes records through
``ParcelStore``; the surrounding application supplies the concrete
stores. ``InMemoryParcelRepository`` implements both for tests and
local runs.
"""

from __future__ import annotations

from parcel_import.stores.base import ParcelStore, PersistenceError, ProjectStore
from parcel_import.stores.memory import InMemoryParcelRepository

__all__ = [
    "InMemoryParcelRepository",
    "ParcelStore",
    "PersistenceError",
    "ProjectStore",
]
