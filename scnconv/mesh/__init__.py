"""Scene file I/O, metadata tables and geometry processing for scnconv."""

from .loader import SUPPORTED_FORMATS, load_scene, save_scene
from .metadata import read_categories, read_lights
from .processing import (
    remove_hierarchy,
    remove_references,
    remove_transformations,
    subdivide_triangles,
)

__all__ = [
    "SUPPORTED_FORMATS",
    "load_scene",
    "read_categories",
    "read_lights",
    "remove_hierarchy",
    "remove_references",
    "remove_transformations",
    "save_scene",
    "subdivide_triangles",
]
