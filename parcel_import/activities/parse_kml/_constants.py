"""Shared constants for KML translation."""

from __future__ import annotations

# Element local names, matched namespace-agnostically so that KML 2.1,
# KML 2.2 and un-namespaced exports all translate the same way.
PLACEMARK = "Placemark"
NAME = "name"
DESCRIPTION = "description"
EXTENDED_DATA = "ExtendedData"

POINT = "Point"
LINE_STRING = "LineString"
LINEAR_RING = "LinearRing"
POLYGON = "Polygon"
MULTI_GEOMETRY = "MultiGeometry"
COORDINATES = "coordinates"
OUTER_BOUNDARY = "outerBoundaryIs"
INNER_BOUNDARY = "innerBoundaryIs"

GEOMETRY_ELEMENTS = frozenset({POINT, LINE_STRING, LINEAR_RING, POLYGON, MULTI_GEOMETRY})

# Simple Placemark children copied into the property bag when present.
SIMPLE_PROPERTY_ELEMENTS: tuple[str, ...] = (NAME, "address", "Snippet", "styleUrl", "visibility")
