"""Shared import constants used by the activities and the HTTP layer.

Centralises the supported upload formats, the parcel lifecycle default,
subscription-tier parcel limits, and the user-facing messages that the
orchestrator and the HTTP layer both rely on.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Upload formats
# ---------------------------------------------------------------------------

KML_EXTENSION: str = ".kml"
KMZ_EXTENSION: str = ".kmz"
GEOJSON_EXTENSIONS: tuple[str, ...] = (".geojson", ".json")

SUPPORTED_EXTENSIONS: tuple[str, ...] = (KML_EXTENSION, KMZ_EXTENSION, *GEOJSON_EXTENSIONS)
"""Every extension the container decoder accepts, in display order."""

# ---------------------------------------------------------------------------
# Quota
# ---------------------------------------------------------------------------

UNLIMITED: int = -1
"""Sentinel ``parcel_limit_per_project`` meaning no per-project cap."""

SUBSCRIPTION_TIER_PARCEL_LIMITS: dict[str, int] = {
    "FREE": 50,
    "BASIC": 200,
    "PRO": UNLIMITED,
    "ENTERPRISE": UNLIMITED,
}
"""Parcels allowed per project for each plan tier."""

# ---------------------------------------------------------------------------
# Canonical record assembly
# ---------------------------------------------------------------------------

LEGAL_DESC_SEPARATOR: str = " | "

# ---------------------------------------------------------------------------
# User-facing messages
# ---------------------------------------------------------------------------

MSG_UNSUPPORTED_FORMAT = "Unsupported file format. Please use KML, KMZ, or GeoJSON"
MSG_NO_KML_IN_ARCHIVE = "No KML file found in KMZ archive"
MSG_PARSE_FAILED = "Failed to parse file. Please ensure it is a valid format"
MSG_NO_FEATURES = "No features found in the file"
MSG_NO_VALID_PARCELS = "No valid parcels found in file"
MSG_UPLOAD_TOO_LARGE = "File is too large to import"
MSG_IMPORT_FAILED = "Failed to import parcels"
