"""KML geometry → GeoJSON geometry conversion.

Coordinates are copied as found (altitude kept when present); the
importer carries geometry through unchanged, so nothing is validated,
closed or repaired here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from parcel_import.activities.parse_kml._constants import (
    COORDINATES,
    GEOMETRY_ELEMENTS,
    INNER_BOUNDARY,
    LINE_STRING,
    LINEAR_RING,
    MULTI_GEOMETRY,
    OUTER_BOUNDARY,
    POINT,
    POLYGON,
)
from parcel_import.activities.parse_kml._validation import local_name

if TYPE_CHECKING:
    from lxml.etree import _Element

Position = list[float]

_MULTI_TYPES = {"Point": "MultiPoint", "LineString": "MultiLineString", "Polygon": "MultiPolygon"}


def placemark_geometry(placemark: _Element) -> dict[str, Any] | None:
    """Return the GeoJSON geometry of a Placemark, or ``None`` if it has none."""
    for child in placemark:
        if local_name(child) in GEOMETRY_ELEMENTS:
            geometry = element_to_geometry(child)
            if geometry is not None:
                return geometry
    return None


def element_to_geometry(elem: _Element) -> dict[str, Any] | None:
    """Convert one KML geometry element. Empty geometries yield ``None``."""
    kind = local_name(elem)

    if kind == POINT:
        coords = _coordinates(elem)
        return {"type": "Point", "coordinates": coords[0]} if coords else None

    if kind in (LINE_STRING, LINEAR_RING):
        coords = _coordinates(elem)
        return {"type": "LineString", "coordinates": coords} if coords else None

    if kind == POLYGON:
        rings = _polygon_rings(elem)
        return {"type": "Polygon", "coordinates": rings} if rings else None

    if kind == MULTI_GEOMETRY:
        return _multi_geometry(elem)

    return None


def parse_coordinates_text(text: str) -> list[Position]:
    """Parse KML coordinate text (``lon,lat[,alt] lon,lat[,alt] ...``)."""
    positions: list[Position] = []
    for token in text.split():
        parts = [p for p in token.split(",") if p]
        if len(parts) < 2:
            continue
        try:
            positions.append([float(p) for p in parts[:3]])
        except ValueError:
            continue
    return positions


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _coordinates(elem: _Element) -> list[Position]:
    for child in elem:
        if local_name(child) == COORDINATES:
            return parse_coordinates_text(child.text or "")
    return []


def _polygon_rings(polygon: _Element) -> list[list[Position]]:
    outer: list[Position] = []
    inner: list[list[Position]] = []
    for boundary in polygon:
        name = local_name(boundary)
        if name not in (OUTER_BOUNDARY, INNER_BOUNDARY):
            continue
        for ring in boundary:
            if local_name(ring) != LINEAR_RING:
                continue
            coords = _coordinates(ring)
            if not coords:
                continue
            if name == OUTER_BOUNDARY:
                outer = coords
            else:
                inner.append(coords)
    if not outer:
        return []
    return [outer, *inner]


def _multi_geometry(elem: _Element) -> dict[str, Any] | None:
    parts: list[dict[str, Any]] = []
    for child in elem:
        if local_name(child) not in GEOMETRY_ELEMENTS:
            continue
        geometry = element_to_geometry(child)
        if geometry is not None:
            parts.append(geometry)
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]

    kinds = {part["type"] for part in parts}
    if len(kinds) == 1 and (kind := kinds.pop()) in _MULTI_TYPES:
        return {"type": _MULTI_TYPES[kind], "coordinates": [part["coordinates"] for part in parts]}
    return {"type": "GeometryCollection", "geometries": parts}
