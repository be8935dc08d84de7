"""GeoJSON loading activity.

GeoJSON uploads bypass KML translation: the text is parsed as JSON and
must be an object carrying a ``features`` array. Individual feature
entries are not inspected here; a malformed entry fails only its own
feature later in the extraction pipeline.
"""

from __future__ import annotations

import json
import logging

from parcel_import.core.exceptions import FormatError
from parcel_import.models.feature import GeoDocument

logger = logging.getLogger("parcel_import.activities.parse_geojson")


class InvalidGeoJsonError(FormatError):
    """Raised when GeoJSON text is not JSON or has no ``features`` array."""

    default_stage = "parse_geojson"
    default_code = "INVALID_GEOJSON"


def load_feature_collection(text: str, *, source_name: str = "") -> GeoDocument:
    """Parse GeoJSON text into a ``GeoDocument``.

    Raises:
        InvalidGeoJsonError: If the text is not valid JSON, is not an
            object, or has no ``features`` array.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, ValueError) as exc:
        msg = f"Not valid JSON: {exc}"
        raise InvalidGeoJsonError(msg) from exc

    if not isinstance(data, dict):
        msg = f"GeoJSON must be an object, got {type(data).__name__}"
        raise InvalidGeoJsonError(msg)

    features = data.get("features")
    if not isinstance(features, list):
        msg = "GeoJSON object has no 'features' array"
        raise InvalidGeoJsonError(msg)

    logger.info(
        "Loaded GeoJSON | source=%s | features=%d",
        source_name or "<text>",
        len(features),
    )
    return GeoDocument(features=features, source_format="geojson")
