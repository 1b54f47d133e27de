"""Scene graph data structures.

This module provides the in-memory scene graph that every conversion stage
edits: a rooted tree of SceneNode objects owned by a Scene, which also keeps
a name index of its nodes.

Geometry attached to nodes (``elements``) is opaque here; it is whatever
trimesh loaded (Trimesh, PointCloud, Path3D, ...). The same element object
may hang off several nodes, which is how instanced (referenced) geometry is
represented.
"""

from __future__ import annotations

from typing import Any, Iterator

import numpy as np

from .bbox import BoundingBox
from .transform import AffineTransform


class SceneNode:
    """A node in the scene tree.

    Attributes:
        name: Unique name within the owning scene
        transform: Local transform, relative to the parent node
        elements: Geometry attached to this node
        children: Ordered child nodes
        parent: Parent node, None for the root and for detached nodes
        scene: Owning scene, None for detached nodes
        info: Free-form metadata (e.g. category annotations)
    """

    def __init__(
        self,
        name: str,
        transform: AffineTransform | None = None,
        elements: list[Any] | None = None,
        info: dict[str, Any] | None = None,
    ) -> None:
        self.name = name
        self.transform = transform or AffineTransform.identity()
        self.elements: list[Any] = list(elements or [])
        self.info: dict[str, Any] = dict(info or {})
        self.children: list[SceneNode] = []
        self.parent: SceneNode | None = None
        self.scene: Scene | None = None

    @property
    def is_root(self) -> bool:
        return self.scene is not None and self.scene.root is self

    @property
    def depth(self) -> int:
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def ancestors(self) -> Iterator[SceneNode]:
        """Yield parent, grandparent, ... up to the root."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def is_ancestor(self, other: SceneNode) -> bool:
        """True if this node is a proper ancestor of ``other``."""
        return any(node is self for node in other.ancestors())

    def is_descendant(self, other: SceneNode) -> bool:
        """True if this node is a proper descendant of ``other``."""
        return other.is_ancestor(self)

    def traverse(self) -> Iterator[SceneNode]:
        """Yield this node and all of its descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def world_transform(self) -> AffineTransform:
        """Composition of this node's transform with all ancestor transforms."""
        return self.transform_to(None)

    def transform_to(self, ancestor: SceneNode | None) -> AffineTransform:
        """Transform from this node's frame into the frame of ``ancestor``.

        The ancestor's own transform is not included. ``None`` means world
        space, i.e. every transform up to and including the root's.

        Raises:
            ValueError: If ``ancestor`` is not an ancestor of this node
        """
        result = self.transform
        node = self.parent
        while node is not ancestor:
            if node is None:
                raise ValueError(f"{ancestor.name!r} is not an ancestor of {self.name!r}")
            result = result.then(node.transform)
            node = node.parent
        return result

    def element_bbox(self) -> BoundingBox:
        """Box around this node's own elements, in node coordinates."""
        boxes = []
        for element in self.elements:
            bounds = getattr(element, "bounds", None)
            if bounds is None:
                continue
            bounds = np.asarray(bounds, dtype=np.float64)
            if bounds.shape != (2, 3):
                continue
            boxes.append(BoundingBox(bounds[0], bounds[1]))
        return BoundingBox.union_all(boxes)

    def local_bbox(self) -> BoundingBox:
        """Box around own elements and the current subtree, in node coordinates."""
        boxes: dict[int, BoundingBox] = {}
        # Reversed pre-order reaches every child before its parent
        for node in reversed(list(self.traverse())):
            box = node.element_bbox()
            for child in node.children:
                box = box.union(boxes.pop(id(child)).transformed(child.transform))
            boxes[id(node)] = box
        return boxes[id(self)]

    def world_bbox(self) -> BoundingBox:
        """Box around own elements and the current subtree, in world coordinates."""
        box = self.local_bbox()
        if box.is_empty:
            return box
        return box.transformed(self.world_transform())

    def __repr__(self) -> str:
        return (
            f"SceneNode({self.name!r}, "
            f"{len(self.children)} children, "
            f"{len(self.elements)} elements)"
        )


class Scene:
    """A scene graph with exactly one root node.

    The root is created with the scene and is never replaced or removed.
    Nodes are indexed by name; names must be unique.
    """

    DEFAULT_ROOT_NAME = "world"

    def __init__(self, name: str = "Untitled Scene", root_name: str = DEFAULT_ROOT_NAME) -> None:
        self.name = name
        self.lights: list[dict[str, Any]] = []
        self.metadata: dict[str, Any] = {}
        self._nodes: dict[str, SceneNode] = {}
        self._root = SceneNode(root_name)
        self._register(self._root)

    @property
    def root(self) -> SceneNode:
        return self._root

    def node(self, name: str) -> SceneNode | None:
        """Look up a node by name.

        Args:
            name: Name of the node to find

        Returns:
            SceneNode if found, None otherwise
        """
        return self._nodes.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def nodes(self) -> list[SceneNode]:
        """All nodes in pre-order, root first."""
        return list(self._root.traverse())

    @property
    def geometries(self) -> list[Any]:
        """Distinct element objects attached anywhere in the scene."""
        seen: dict[int, Any] = {}
        for node in self._root.traverse():
            for element in node.elements:
                seen.setdefault(id(element), element)
        return list(seen.values())

    @property
    def referenced_geometries(self) -> list[Any]:
        """Element objects attached to more than one node."""
        counts: dict[int, int] = {}
        objects: dict[int, Any] = {}
        for node in self._root.traverse():
            for element in {id(e): e for e in node.elements}.values():
                counts[id(element)] = counts.get(id(element), 0) + 1
                objects[id(element)] = element
        return [objects[key] for key, count in counts.items() if count > 1]

    def unique_name(self, base: str) -> str:
        """Return ``base`` or ``base_N``, whichever is not yet used."""
        if base not in self._nodes:
            return base
        i = 1
        while f"{base}_{i}" in self._nodes:
            i += 1
        return f"{base}_{i}"

    def add_node(self, node: SceneNode, parent: SceneNode | None = None) -> SceneNode:
        """Insert a detached node (and its subtree) under ``parent``.

        Args:
            node: Node to insert; must not belong to a scene
            parent: Parent node in this scene (defaults to the root)

        Returns:
            The inserted node

        Raises:
            ValueError: If the node is attached already, the parent is not
                in this scene, or a name in the subtree is already taken
        """
        parent = parent or self._root
        if parent.scene is not self:
            raise ValueError(f"Parent node {parent.name!r} is not part of this scene")
        if node.scene is not None or node.parent is not None:
            raise ValueError(f"Node {node.name!r} is already attached")

        subtree = list(node.traverse())
        for n in subtree:
            if n.name in self._nodes:
                raise ValueError(f"Duplicate node name: {n.name!r}")

        node.parent = parent
        parent.children.append(node)
        for n in subtree:
            self._register(n)
        return node

    def remove_node(self, node: SceneNode) -> int:
        """Detach and destroy a node and its whole subtree.

        Args:
            node: Node to remove

        Returns:
            Number of nodes destroyed

        Raises:
            ValueError: If the node is the root or belongs to another scene
        """
        if node is self._root:
            raise ValueError("The scene root cannot be removed")
        if node.scene is not self:
            raise ValueError(f"Node {node.name!r} is not part of this scene")

        parent = node.parent
        if parent is not None:
            parent.children.remove(node)
        node.parent = None

        # Post-order so children are released before their parent
        destroyed = 0
        for n in reversed(list(node.traverse())):
            self._nodes.pop(n.name, None)
            n.scene = None
            n.parent = None
            n.children = []
            destroyed += 1
        return destroyed

    def reparent(self, node: SceneNode, new_parent: SceneNode) -> None:
        """Move a node (with its subtree) under another parent.

        The local transform is kept, so world placement may change.

        Raises:
            ValueError: If the move would detach the root or create a cycle
        """
        if node is self._root:
            raise ValueError("The scene root cannot be reparented")
        if node.scene is not self or new_parent.scene is not self:
            raise ValueError("Both nodes must be part of this scene")
        if new_parent is node or node.is_ancestor(new_parent):
            raise ValueError(f"Cannot move {node.name!r} below itself")

        if node.parent is not None:
            node.parent.children.remove(node)
        node.parent = new_parent
        new_parent.children.append(node)

    def _register(self, node: SceneNode) -> None:
        node.scene = self
        self._nodes[node.name] = node

    def stats(self) -> dict[str, Any]:
        """Return statistics about the scene."""
        geometries = self.geometries
        materials = {
            id(material)
            for material in (
                getattr(getattr(g, "visual", None), "material", None) for g in geometries
            )
            if material is not None
        }
        return {
            "name": self.name,
            "num_nodes": len(self),
            "num_lights": len(self.lights),
            "num_materials": len(materials),
            "num_geometries": len(geometries),
            "num_referenced_geometries": len(self.referenced_geometries),
            "bbox": self._root.world_bbox(),
        }

    def __repr__(self) -> str:
        return f"Scene('{self.name}', {len(self)} nodes)"
