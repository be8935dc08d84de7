"""Data model for the intermediate GeoJSON FeatureCollection.

A ``GeoDocument`` is what the container decoder and the KML translator
hand to the extraction pipeline. Feature geometry is opaque: it is
carried through to the parcel record exactly as received.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class GeoFeature:
    """A single GeoJSON feature.

    Attributes:
        geometry: GeoJSON geometry mapping, or ``None`` when absent.
        properties: Source-defined property bag. Keys are whatever the
            exporting GIS system chose.
        feature_id: Optional feature identifier (GeoJSON ``id`` or the
            KML Placemark ``id`` attribute).
    """

    geometry: dict[str, Any] | None = None
    properties: dict[str, Any] = field(default_factory=dict)
    feature_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a standards-shaped GeoJSON Feature."""
        data: dict[str, Any] = {
            "type": "Feature",
            "geometry": self.geometry,
            "properties": dict(self.properties),
        }
        if self.feature_id is not None:
            data["id"] = self.feature_id
        return data

    @classmethod
    def from_dict(cls, data: object) -> GeoFeature:
        """Build a feature from a parsed GeoJSON object.

        A ``null`` or missing ``properties`` member becomes an empty bag.
        A ``null`` or missing ``geometry`` is preserved as ``None`` so the
        pipeline can skip it with a warning.

        Raises:
            TypeError: If *data* is not an object, or ``properties`` is
                neither an object nor null.
        """
        if not isinstance(data, dict):
            msg = f"feature must be an object, got {type(data).__name__}"
            raise TypeError(msg)

        properties = data.get("properties")
        if properties is None:
            properties = {}
        if not isinstance(properties, dict):
            msg = f"properties must be an object, got {type(properties).__name__}"
            raise TypeError(msg)

        raw_id = data.get("id")
        return cls(
            geometry=data.get("geometry") or None,
            properties={str(k): v for k, v in properties.items()},
            feature_id=str(raw_id) if raw_id is not None else None,
        )


@dataclass(frozen=True, slots=True)
class GeoDocument:
    """An ordered FeatureCollection.

    ``features`` holds the raw feature objects in document order. They are
    converted to ``GeoFeature`` one at a time by the extraction pipeline so
    that a single malformed entry fails only its own feature.
    """

    features: list[Any] = field(default_factory=list)
    source_format: str = ""

    def __len__(self) -> int:
        return len(self.features)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a GeoJSON FeatureCollection."""
        return {
            "type": "FeatureCollection",
            "features": [
                f.to_dict() if isinstance(f, GeoFeature) else f for f in self.features
            ],
        }
