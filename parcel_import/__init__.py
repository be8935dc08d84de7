"""Right-of-way parcel import normalization.

Ingests KML, KMZ and GeoJSON files exported by county GIS systems,
resolves their inconsistent attribute schemas into canonical parcel
records, and reports per-feature successes, warnings and errors.
"""

__version__ = "0.1.0"
