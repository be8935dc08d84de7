"""Shared pytest fixtures for the parcel import test suite."""

from __future__ import annotations

import io
import json
import zipfile
from typing import Any

import pytest

from parcel_import.models.catalog import FieldCatalog, default_field_catalog
from parcel_import.models.quota import SubscriptionLimits
from parcel_import.stores.memory import InMemoryParcelRepository

OWNER_ID = "user-1"
PROJECT_ID = "project-1"

# ---------------------------------------------------------------------------
# Geometry helpers
# ---------------------------------------------------------------------------


def square(x: float = -79.5, y: float = 37.3, size: float = 0.01) -> dict[str, Any]:
    """Closed GeoJSON polygon with its south-west corner at ``(x, y)``."""
    ring = [[x, y], [x + size, y], [x + size, y + size], [x, y + size], [x, y]]
    return {"type": "Polygon", "coordinates": [ring]}


def feature(geometry: dict[str, Any] | None = None, **properties: Any) -> dict[str, Any]:
    """Raw GeoJSON feature object."""
    return {"type": "Feature", "geometry": geometry, "properties": properties}


def feature_collection(*features: dict[str, Any]) -> bytes:
    return json.dumps({"type": "FeatureCollection", "features": list(features)}).encode()


def make_kmz(entries: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, data in entries.items():
            archive.writestr(name, data)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Sample documents
# ---------------------------------------------------------------------------

SAMPLE_KML = b"""<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document>
    <name>Route 29 corridor</name>
    <Style id="parcel"><LineStyle><color>ff0000ff</color></LineStyle></Style>
    <Folder>
      <name>Bedford</name>
      <Placemark id="p1">
        <name>101-A-12</name>
        <ExtendedData>
          <Data name="OWNER1"><value>SMITH JOHN</value></Data>
          <Data name="ACREAGE"><value>12.5</value></Data>
          <Data name="county"><value>Bedford County, VA</value></Data>
        </ExtendedData>
        <Polygon>
          <outerBoundaryIs><LinearRing><coordinates>
            -79.50,37.30,0 -79.49,37.30,0 -79.49,37.31,0 -79.50,37.31,0 -79.50,37.30,0
          </coordinates></LinearRing></outerBoundaryIs>
        </Polygon>
      </Placemark>
      <Folder>
        <name>Nested</name>
        <Placemark id="p2">
          <name>101-A-13</name>
          <description><![CDATA[
            <table>
              <tr><td>Owner Name</td><td>JANE DOE</td></tr>
              <tr><td>Mailing Address:</td><td>PO BOX 964 LYNCHBURG, VA 24505</td></tr>
              <tr><td>Deeded Acres</td><td>3.25</td></tr>
            </table>
          ]]></description>
          <Polygon>
            <outerBoundaryIs><LinearRing><coordinates>
              -79.48,37.30 -79.47,37.30 -79.47,37.31 -79.48,37.31 -79.48,37.30
            </coordinates></LinearRing></outerBoundaryIs>
          </Polygon>
        </Placemark>
      </Folder>
    </Folder>
    <Placemark>
      <name>Label only</name>
    </Placemark>
  </Document>
</kml>
"""


@pytest.fixture()
def sample_kml() -> bytes:
    """KML with two parcels in nested folders and one geometry-less Placemark."""
    return SAMPLE_KML


@pytest.fixture()
def sample_kmz() -> bytes:
    """KMZ wrapping ``SAMPLE_KML`` next to an image resource."""
    return make_kmz({"files/icon.png": b"\x89PNG", "doc.kml": SAMPLE_KML})


@pytest.fixture()
def sample_geojson() -> bytes:
    """Five features; the third has no geometry."""
    return feature_collection(
        feature(square(-79.50), PARCEL_ID="1", OWNER="A"),
        feature(square(-79.49), PARCEL_ID="2", OWNER="B"),
        feature(None, PARCEL_ID="3", OWNER="C"),
        feature(square(-79.47), PARCEL_ID="4", OWNER="D"),
        feature(square(-79.46), PARCEL_ID="5", OWNER="E"),
    )


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture()
def catalog() -> FieldCatalog:
    """The packaged field catalog."""
    return default_field_catalog()


@pytest.fixture()
def repository() -> InMemoryParcelRepository:
    """Repository with one empty project owned by ``OWNER_ID`` on a PRO plan."""
    repo = InMemoryParcelRepository()
    repo.add_project(PROJECT_ID, OWNER_ID, name="Route 29")
    repo.set_subscription(OWNER_ID, SubscriptionLimits.for_tier("PRO"))
    return repo
