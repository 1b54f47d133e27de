"""scnconv - Scene conversion with selection and transform editing.

Converts hierarchical 3D scenes between file formats (via trimesh) while
optionally pruning nodes to a region or subtree, transforming the scene
root and flattening, de-instancing, baking or subdividing geometry.
"""

__version__ = "0.1.0"

from .core.config import ConversionConfig
from .core.errors import SceneConversionError
from .core.pipeline import SceneConverter, convert_scene
from .mesh.loader import load_scene, save_scene
from .scene import (
    AffineTransform,
    BoundingBox,
    Scene,
    SceneNode,
    SelectionFilter,
    TransformComposer,
    prune_scene,
)

__all__ = [
    "AffineTransform",
    "BoundingBox",
    "ConversionConfig",
    "Scene",
    "SceneConversionError",
    "SceneConverter",
    "SceneNode",
    "SelectionFilter",
    "TransformComposer",
    "convert_scene",
    "load_scene",
    "prune_scene",
    "save_scene",
]
