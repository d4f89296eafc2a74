"""Shared helpers: GeoJSON serialization, NDJSON streams, geometry transforms."""
