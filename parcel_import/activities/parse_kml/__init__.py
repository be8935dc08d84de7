"""KML → GeoJSON translation activity.

Parses KML text as XML and walks its structure, producing a
standards-shaped GeoJSON FeatureCollection:

- Every Placemark with a geometry becomes one Feature, in document
  order, however deeply it is nested in Folders or Documents.
- Styles, folders and Placemarks without geometry are dropped.
- ``name``, ``description`` and ``ExtendedData`` are flattened into the
  feature's property bag.

The translation stages are split into focused modules:
- **_validation**: hardened XML parse, ``<kml>`` root check
- **_geometry**: KML geometry elements → GeoJSON geometry
- **_properties**: Placemark children → property bag
"""

from __future__ import annotations

import logging

from parcel_import.activities.parse_kml._constants import PLACEMARK
from parcel_import.activities.parse_kml._geometry import (
    element_to_geometry,
    parse_coordinates_text,
    placemark_geometry,
)
from parcel_import.activities.parse_kml._properties import (
    extract_extended_data,
    inner_markup,
    placemark_properties,
)
from parcel_import.activities.parse_kml._validation import (
    MalformedKmlError,
    local_name,
    parse_kml_root,
)
from parcel_import.models.feature import GeoDocument, GeoFeature

logger = logging.getLogger("parcel_import.activities.parse_kml")

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "MalformedKmlError",
    "element_to_geometry",
    "extract_extended_data",
    "inner_markup",
    "kml_to_geojson",
    "parse_coordinates_text",
    "placemark_geometry",
    "placemark_properties",
]


def kml_to_geojson(kml_text: str, *, source_name: str = "") -> GeoDocument:
    """Translate a KML document into a GeoJSON FeatureCollection.

    Args:
        kml_text: Decoded KML text.
        source_name: Upload or archive-entry name, for logging.

    Returns:
        A ``GeoDocument`` whose features are ``GeoFeature`` objects.
        Empty if the document has no geometry-bearing Placemarks.

    Raises:
        MalformedKmlError: If the text is not well-formed KML.
    """
    root = parse_kml_root(kml_text)

    features: list[GeoFeature] = []
    dropped = 0
    for elem in root.iter():
        if local_name(elem) != PLACEMARK:
            continue

        geometry = placemark_geometry(elem)
        if geometry is None:
            dropped += 1
            continue

        features.append(
            GeoFeature(
                geometry=geometry,
                properties=placemark_properties(elem),
                feature_id=elem.get("id"),
            )
        )

    logger.info(
        "Translated KML | source=%s | features=%d | dropped_without_geometry=%d",
        source_name or "<text>",
        len(features),
        dropped,
    )
    return GeoDocument(features=features, source_format="kml")
