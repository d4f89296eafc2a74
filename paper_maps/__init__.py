"""Paper Maps dataset assembly pipeline.

Validates per-publisher paper map coverage features against one canonical
GeoJSON schema, merges them into a single dataset, emits the archive,
sample and tile-generator inputs, and checks every referenced link.
"""

__version__ = "0.1.0"
