"""Scene graph, selection and transform editing.

This module provides the in-memory scene graph, the selection pass that
prunes it, and the transform composer that edits the root placement.
"""

from .bbox import BoundingBox
from .transform import AffineTransform, read_matrix_file
from .scene import Scene, SceneNode
from .selection import SelectionFilter, prune_scene
from .composer import TransformComposer, compose_transform

__all__ = [
    "AffineTransform",
    "BoundingBox",
    "Scene",
    "SceneNode",
    "SelectionFilter",
    "TransformComposer",
    "compose_transform",
    "prune_scene",
    "read_matrix_file",
]
