"""Node selection and pruning.

Removes every node that falls outside a region of interest and/or outside
a named subtree, in a single post-order sweep over the scene graph. A node
is only removed once it has no children left, so pruning never disconnects
a retained node from the root, and the root itself always survives.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..core.errors import SelectionTargetNotFound
from .bbox import BoundingBox
from .scene import Scene, SceneNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionFilter:
    """Which nodes to keep.

    Attributes:
        bbox: World-space region of interest; empty means no bbox filter
        subtree_name: Name of the node whose subtree (plus ancestors) is
            kept; None means no subtree filter
    """

    bbox: BoundingBox = field(default_factory=BoundingBox.empty)
    subtree_name: str | None = None

    @property
    def is_active(self) -> bool:
        return not self.bbox.is_empty or self.subtree_name is not None


def prune_scene(scene: Scene, selection: SelectionFilter) -> int:
    """Remove nodes that fail the selection, in place.

    Args:
        scene: Scene to prune
        selection: Bounding box and/or subtree filter

    Returns:
        Number of nodes removed

    Raises:
        SelectionTargetNotFound: If ``selection.subtree_name`` names no node.
            The scene is left untouched in that case.
    """
    if not selection.is_active:
        return 0

    target: SceneNode | None = None
    if selection.subtree_name is not None:
        target = scene.node(selection.subtree_name)
        if target is None:
            raise SelectionTargetNotFound(selection.subtree_name)

    removed = _prune_tree(scene, target, selection.bbox)
    logger.info(f"Pruned {removed} nodes, {len(scene)} remain")
    return removed


def _prune_tree(scene: Scene, target: SceneNode | None, bbox: BoundingBox) -> int:
    removed = 0

    # Post-order: a node is visited again once all its children are done
    stack: list[tuple[SceneNode, bool]] = [(scene.root, False)]
    while stack:
        node, children_done = stack.pop()
        if not children_done:
            stack.append((node, True))
            # Copy children, pruning a child edits node.children
            stack.extend((child, False) for child in reversed(tuple(node.children)))
            continue

        # Never orphan surviving children, never drop the root
        if node.children or node is scene.root:
            continue

        if _fails_selection(node, target, bbox):
            logger.debug(f"Removing node {node.name}")
            removed += scene.remove_node(node)

    return removed


def _fails_selection(node: SceneNode, target: SceneNode | None, bbox: BoundingBox) -> bool:
    if target is not None and node is not target:
        if not node.is_ancestor(target) and not node.is_descendant(target):
            return True

    return not bbox.is_empty and not node.world_bbox().intersects(bbox)
