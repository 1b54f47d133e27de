"""Shared fixtures for scnconv tests."""

from __future__ import annotations

from typing import Callable, Sequence

import numpy as np
import pytest
import trimesh

from scnconv.scene.scene import Scene, SceneNode
from scnconv.scene.transform import AffineTransform


def _box(center: Sequence[float] = (0.0, 0.0, 0.0), extents: Sequence[float] = (2.0, 2.0, 2.0)) -> trimesh.Trimesh:
    mesh = trimesh.creation.box(extents=extents)
    mesh.apply_translation(np.asarray(center, dtype=np.float64))
    return mesh


@pytest.fixture
def make_box() -> Callable[..., trimesh.Trimesh]:
    """Factory for axis-aligned box meshes centred on a point."""
    return _box


@pytest.fixture
def make_box_node() -> Callable[..., SceneNode]:
    """Factory for nodes carrying a single box mesh."""

    def factory(
        name: str,
        center: Sequence[float] = (0.0, 0.0, 0.0),
        extents: Sequence[float] = (2.0, 2.0, 2.0),
        transform: AffineTransform | None = None,
    ) -> SceneNode:
        return SceneNode(name, transform, [_box(center, extents)])

    return factory


@pytest.fixture
def house_scene(make_box_node) -> Scene:
    """Small hierarchy used by the subtree tests.

    world
    ├── house
    │   ├── room1
    │   │   ├── chair
    │   │   └── table
    │   └── room2
    │       └── bed
    └── garden
    """
    scene = Scene(name="house")
    house = scene.add_node(SceneNode("house"))
    room1 = scene.add_node(SceneNode("room1"), house)
    room2 = scene.add_node(SceneNode("room2"), house)
    scene.add_node(make_box_node("chair", center=(1.0, 0.0, 0.0)), room1)
    scene.add_node(make_box_node("table", center=(3.0, 0.0, 0.0)), room1)
    scene.add_node(make_box_node("bed", center=(10.0, 0.0, 0.0)), room2)
    scene.add_node(make_box_node("garden", center=(30.0, 0.0, 0.0)))
    return scene
