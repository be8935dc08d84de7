"""Tests for KML → GeoJSON translation.

Covers:
- Placemarks in nested Folders/Documents, in document order
- Geometry conversion (Point, LineString, Polygon with holes, MultiGeometry)
- Property flattening (name, description markup, ExtendedData)
- Placemarks without geometry are dropped
- Malformed input
"""

from __future__ import annotations

import pytest

from parcel_import.activities.parse_kml import (
    MalformedKmlError,
    kml_to_geojson,
    parse_coordinates_text,
)
from parcel_import.models.feature import GeoFeature
from tests.conftest import SAMPLE_KML

NS = 'xmlns="http://www.opengis.net/kml/2.2"'


def _kml(body: str, ns: str = NS) -> str:
    return f"<kml {ns}><Document>{body}</Document></kml>"


def _only(body: str) -> GeoFeature:
    document = kml_to_geojson(_kml(body))
    assert len(document) == 1
    feature = document.features[0]
    assert isinstance(feature, GeoFeature)
    return feature


class TestDocumentWalk:
    """Placemark discovery."""

    def test_sample_document(self) -> None:
        document = kml_to_geojson(SAMPLE_KML.decode())
        assert document.source_format == "kml"
        assert [f.properties["name"] for f in document.features] == ["101-A-12", "101-A-13"]
        assert [f.feature_id for f in document.features] == ["p1", "p2"]

    def test_placemark_without_geometry_dropped(self) -> None:
        document = kml_to_geojson(_kml("<Placemark><name>x</name></Placemark>"))
        assert len(document) == 0

    def test_document_order_across_folders(self) -> None:
        body = (
            "<Folder><Placemark><name>a</name><Point><coordinates>1,1</coordinates></Point>"
            "</Placemark></Folder>"
            "<Placemark><name>b</name><Point><coordinates>2,2</coordinates></Point></Placemark>"
            "<Folder><Folder><Placemark><name>c</name><Point><coordinates>3,3</coordinates>"
            "</Point></Placemark></Folder></Folder>"
        )
        document = kml_to_geojson(_kml(body))
        assert [f.properties["name"] for f in document.features] == ["a", "b", "c"]

    def test_unnamespaced_kml(self) -> None:
        body = "<Placemark><Point><coordinates>1,2</coordinates></Point></Placemark>"
        document = kml_to_geojson(_kml(body, ns=""))
        assert len(document) == 1

    def test_xml_declaration_with_encoding(self) -> None:
        text = '<?xml version="1.0" encoding="UTF-8"?>' + _kml(
            "<Placemark><Point><coordinates>1,2</coordinates></Point></Placemark>"
        )
        assert len(kml_to_geojson(text)) == 1


class TestGeometry:
    """KML geometry elements become GeoJSON geometry."""

    def test_point_keeps_altitude(self) -> None:
        feature = _only(
            "<Placemark><Point><coordinates>-79.5,37.3,120</coordinates></Point></Placemark>"
        )
        assert feature.geometry == {"type": "Point", "coordinates": [-79.5, 37.3, 120.0]}

    def test_linestring(self) -> None:
        feature = _only(
            "<Placemark><LineString><coordinates>0,0 1,1\n2,2</coordinates>"
            "</LineString></Placemark>"
        )
        assert feature.geometry == {
            "type": "LineString",
            "coordinates": [[0.0, 0.0], [1.0, 1.0], [2.0, 2.0]],
        }

    def test_polygon_with_hole(self) -> None:
        feature = _only(
            "<Placemark><Polygon>"
            "<outerBoundaryIs><LinearRing><coordinates>0,0 4,0 4,4 0,4 0,0</coordinates>"
            "</LinearRing></outerBoundaryIs>"
            "<innerBoundaryIs><LinearRing><coordinates>1,1 2,1 2,2 1,1</coordinates>"
            "</LinearRing></innerBoundaryIs>"
            "</Polygon></Placemark>"
        )
        assert feature.geometry is not None
        assert feature.geometry["type"] == "Polygon"
        outer, hole = feature.geometry["coordinates"]
        assert len(outer) == 5
        assert hole[0] == [1.0, 1.0]

    def test_multigeometry_of_polygons(self) -> None:
        ring = (
            "<outerBoundaryIs><LinearRing><coordinates>{0},0 {1},0 {1},1 {0},0</coordinates>"
            "</LinearRing></outerBoundaryIs>"
        )
        feature = _only(
            "<Placemark><MultiGeometry>"
            f"<Polygon>{ring.format(0, 1)}</Polygon>"
            f"<Polygon>{ring.format(2, 3)}</Polygon>"
            "</MultiGeometry></Placemark>"
        )
        assert feature.geometry is not None
        assert feature.geometry["type"] == "MultiPolygon"
        assert len(feature.geometry["coordinates"]) == 2

    def test_mixed_multigeometry(self) -> None:
        feature = _only(
            "<Placemark><MultiGeometry>"
            "<Point><coordinates>0,0</coordinates></Point>"
            "<LineString><coordinates>0,0 1,1</coordinates></LineString>"
            "</MultiGeometry></Placemark>"
        )
        assert feature.geometry is not None
        assert feature.geometry["type"] == "GeometryCollection"
        assert [g["type"] for g in feature.geometry["geometries"]] == ["Point", "LineString"]

    def test_single_part_multigeometry_unwrapped(self) -> None:
        feature = _only(
            "<Placemark><MultiGeometry><Point><coordinates>5,6</coordinates></Point>"
            "</MultiGeometry></Placemark>"
        )
        assert feature.geometry == {"type": "Point", "coordinates": [5.0, 6.0]}

    def test_empty_coordinates_means_no_geometry(self) -> None:
        document = kml_to_geojson(
            _kml("<Placemark><Point><coordinates> </coordinates></Point></Placemark>")
        )
        assert len(document) == 0

    def test_parse_coordinates_skips_garbage(self) -> None:
        assert parse_coordinates_text("1,2 bad 3 4,5,6") == [[1.0, 2.0], [4.0, 5.0, 6.0]]


class TestProperties:
    """Placemark children flattened into the property bag."""

    def test_extended_data_values(self) -> None:
        feature = kml_to_geojson(SAMPLE_KML.decode()).features[0]
        assert feature.properties == {
            "name": "101-A-12",
            "OWNER1": "SMITH JOHN",
            "ACREAGE": "12.5",
            "county": "Bedford County, VA",
        }

    def test_schema_data(self) -> None:
        feature = _only(
            "<Placemark><ExtendedData><SchemaData schemaUrl='#parcels'>"
            "<SimpleData name='PIN'>123-45</SimpleData>"
            "<SimpleData name='EMPTY'> </SimpleData>"
            "</SchemaData></ExtendedData>"
            "<Point><coordinates>1,2</coordinates></Point></Placemark>"
        )
        assert feature.properties == {"PIN": "123-45"}

    def test_cdata_description_kept_as_markup(self) -> None:
        feature = kml_to_geojson(SAMPLE_KML.decode()).features[1]
        description = feature.properties["description"]
        assert "<table>" in description
        assert "JANE DOE" in description

    def test_inline_xhtml_description_serialized(self) -> None:
        feature = _only(
            "<Placemark><description><div>Owner: JANE</div></description>"
            "<Point><coordinates>1,2</coordinates></Point></Placemark>"
        )
        assert "<div" in feature.properties["description"]
        assert "Owner: JANE" in feature.properties["description"]

    def test_escaped_description(self) -> None:
        feature = _only(
            "<Placemark><description>&lt;b&gt;Owner:&lt;/b&gt; JANE</description>"
            "<Point><coordinates>1,2</coordinates></Point></Placemark>"
        )
        assert feature.properties["description"] == "<b>Owner:</b> JANE"


class TestMalformed:
    """Unusable KML raises MalformedKmlError."""

    def test_not_xml(self) -> None:
        with pytest.raises(MalformedKmlError, match="Not valid XML"):
            kml_to_geojson("this is not xml <")

    def test_empty(self) -> None:
        with pytest.raises(MalformedKmlError, match="empty"):
            kml_to_geojson("   ")

    def test_wrong_root(self) -> None:
        with pytest.raises(MalformedKmlError, match="root element is <gpx>"):
            kml_to_geojson("<gpx><trk/></gpx>")

    def test_entities_not_expanded(self) -> None:
        text = (
            '<!DOCTYPE kml [<!ENTITY secret SYSTEM "file:///etc/passwd">]>'
            "<kml><Placemark><name>&secret;</name>"
            "<Point><coordinates>1,2</coordinates></Point></Placemark></kml>"
        )
        document = kml_to_geojson(text)
        assert "root:" not in document.features[0].properties.get("name", "")
