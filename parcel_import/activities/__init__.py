"""Import activity functions.

Each activity performs a single unit of work within an import:
- decode_container: Turn an uploaded file into KML or GeoJSON text
- parse_kml: Translate KML into a GeoJSON FeatureCollection
- parse_geojson: Load GeoJSON text into a FeatureCollection
- unpack_description: Recover key/value pairs from HTML descriptions
- resolve_attributes: Map source property names to canonical fields
- extract_parcels: Build canonical parcel records, apply quotas
"""
