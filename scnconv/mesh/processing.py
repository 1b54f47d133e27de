"""Whole-scene geometry operations.

These run after selection and transform editing, each at most once:
removing references (instanced geometry), flattening the hierarchy,
baking node transforms into geometry and subdividing long triangle edges.
"""

from __future__ import annotations

import logging
import math
from typing import Any

import trimesh

from ..scene.scene import Scene
from ..scene.transform import AffineTransform

logger = logging.getLogger(__name__)


def remove_references(scene: Scene) -> int:
    """Give every node its own copy of geometry shared with other nodes.

    The first node to reference an element (in pre-order) keeps the
    original object; later nodes get copies.

    Returns:
        Number of copies made
    """
    seen: set[int] = set()
    copies = 0
    for node in scene.nodes:
        for i, element in enumerate(node.elements):
            if id(element) in seen:
                node.elements[i] = element.copy()
                copies += 1
            else:
                seen.add(id(element))

    logger.debug(f"Removed references: {copies} geometry copies")
    return copies


def remove_hierarchy(scene: Scene) -> int:
    """Flatten the scene so every geometry node is a child of the root.

    Each node with elements is moved directly below the root, with a local
    transform equal to its previous transform relative to the root, so its
    world placement is unchanged. Nodes without elements are removed.

    Returns:
        Number of nodes left below the root
    """
    root = scene.root
    flattened = [
        (node, node.transform_to(root))
        for node in scene.nodes
        if node is not root and node.elements
    ]

    for child in tuple(root.children):
        scene.remove_node(child)

    for node, transform in flattened:
        node.transform = transform
        scene.add_node(node, root)

    logger.debug(f"Removed hierarchy: {len(flattened)} nodes below root")
    return len(flattened)


def remove_transformations(scene: Scene) -> int:
    """Bake each node's world transform into its geometry.

    Geometry is copied before baking, so elements shared between nodes
    with different placements stay correct. Afterwards every node
    transform, the root's included, is the identity.

    Returns:
        Number of elements baked
    """
    baked = 0
    for node in scene.nodes:
        world = node.world_transform()
        if node.elements and not world.is_identity:
            node.elements = [_baked_copy(element, world) for element in node.elements]
            baked += len(node.elements)

    for node in scene.nodes:
        node.transform = AffineTransform.identity()

    logger.debug(f"Removed transformations: {baked} elements baked")
    return baked


def _baked_copy(element: Any, transform: AffineTransform) -> Any:
    copy = element.copy()
    copy.apply_transform(transform.matrix.copy())
    return copy


def subdivide_triangles(scene: Scene, max_edge_length: float) -> int:
    """Split triangles until no edge is longer than ``max_edge_length``.

    Lengths are measured in each mesh's own coordinates. Elements that are
    not triangle meshes are left alone.

    Args:
        scene: Scene to edit
        max_edge_length: Longest allowed edge; values <= 0 do nothing

    Returns:
        Number of meshes subdivided
    """
    if max_edge_length <= 0:
        return 0

    replaced: dict[int, Any] = {}
    for element in scene.geometries:
        if not isinstance(element, trimesh.Trimesh) or len(element.faces) == 0:
            continue

        longest = float(element.edges_unique_length.max())
        if longest <= max_edge_length:
            continue

        # Each pass halves the longest edge
        max_iter = int(math.ceil(math.log2(longest / max_edge_length))) + 2
        subdivided = element.subdivide_to_size(max_edge=max_edge_length, max_iter=max_iter)
        subdivided.metadata.update(element.metadata)
        replaced[id(element)] = subdivided
        logger.debug(
            f"Subdivided {element.metadata.get('name', 'mesh')}: "
            f"{len(element.faces)} -> {len(subdivided.faces)} faces"
        )

    if replaced:
        for node in scene.nodes:
            node.elements = [replaced.get(id(e), e) for e in node.elements]

    return len(replaced)
