"""Scene loading and saving using trimesh.

This module converts between trimesh scenes (any format trimesh can read
or write: glTF/GLB, OBJ, PLY, STL, OFF, DAE) and the scnconv scene graph.
"""

from __future__ import annotations

import json
import logging
import struct
from collections import defaultdict
from pathlib import Path
from typing import Any
from xml.sax.saxutils import escape

import numpy as np
import trimesh

from ..core.errors import SceneLoadError, SceneSaveError
from ..scene.scene import Scene, SceneNode
from ..scene.transform import AffineTransform

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = {".glb", ".gltf", ".obj", ".ply", ".stl", ".off", ".dae"}


def load_scene(path: str | Path) -> Scene:
    """Load a scene graph from file.

    Every edge of the trimesh scene graph becomes a SceneNode whose local
    transform is the edge matrix and whose element is the edge geometry.
    Nodes that reference the same geometry share one element object.

    Args:
        path: Path to a scene or mesh file

    Returns:
        Loaded Scene

    Raises:
        SceneLoadError: If the file is missing, unsupported or unreadable
    """
    path = Path(path)

    if not path.exists():
        raise SceneLoadError(path, "file not found")

    if path.suffix.lower() not in SUPPORTED_FORMATS:
        raise SceneLoadError(
            path,
            f"unsupported format {path.suffix or '(none)'}; "
            f"supported: {sorted(SUPPORTED_FORMATS)}"
        )

    try:
        loaded = trimesh.load(str(path), force="scene")
    except Exception as e:
        raise SceneLoadError(path, str(e)) from e

    if not isinstance(loaded, trimesh.Scene):
        loaded = trimesh.Scene(loaded)

    scene = from_trimesh_scene(loaded, name=path.stem)
    logger.debug(f"Loaded {len(scene)} nodes from {path}")
    return scene


def from_trimesh_scene(tm_scene: trimesh.Scene, name: str = "Untitled Scene") -> Scene:
    """Build a Scene from a trimesh Scene.

    Args:
        tm_scene: trimesh Scene containing geometries and a scene graph
        name: Name for the resulting scene

    Returns:
        Scene whose root is the trimesh base frame
    """
    graph = tm_scene.graph
    scene = Scene(name=name, root_name=str(graph.base_frame))

    # Parent -> [(child, edge attributes)] in graph order
    children: dict[str, list[tuple[str, dict[str, Any]]]] = defaultdict(list)
    for parent_name, child_name, attr in graph.to_edgelist():
        children[str(parent_name)].append((str(child_name), attr))

    for geom_name, geometry in tm_scene.geometry.items():
        geometry.metadata.setdefault("name", geom_name)

    stack = [scene.root]
    while stack:
        parent = stack.pop()
        for child_name, attr in children.get(parent.name, []):
            matrix = attr.get("matrix")
            transform = (
                AffineTransform.from_matrix(np.asarray(matrix, dtype=np.float64))
                if matrix is not None
                else AffineTransform.identity()
            )
            elements = []
            geom_name = attr.get("geometry")
            if geom_name is not None and geom_name in tm_scene.geometry:
                elements.append(tm_scene.geometry[geom_name])

            node = scene.add_node(SceneNode(child_name, transform, elements), parent)
            stack.append(node)

    return scene


def to_trimesh_scene(scene: Scene) -> trimesh.Scene:
    """Build a trimesh Scene from a Scene.

    The base frame of a trimesh graph carries no transform, so the root's
    transform is folded into the edges of its direct children. Geometry
    attached to the root, and any element after a node's first, hangs off
    an extra child frame. Element objects shared between nodes are exported
    once and instanced.
    """
    root = scene.root
    tm_scene = trimesh.Scene(base_frame=root.name)
    geom_names: dict[int, str] = {}
    used_frames = {node.name for node in scene.nodes}

    def frame_name(base: str) -> str:
        candidate, i = base, 1
        while candidate in used_frames:
            candidate = f"{base}_{i}"
            i += 1
        used_frames.add(candidate)
        return candidate

    def attach(frame: str, parent: str, matrix: np.ndarray, element: Any | None) -> None:
        if element is None:
            tm_scene.graph.update(frame_to=frame, frame_from=parent, matrix=matrix)
        elif id(element) in geom_names:
            tm_scene.graph.update(
                frame_to=frame,
                frame_from=parent,
                matrix=matrix,
                geometry=geom_names[id(element)],
            )
        else:
            tm_scene.add_geometry(
                element,
                node_name=frame,
                geom_name=element.metadata.get("name", frame),
                parent_node_name=parent,
                transform=matrix,
            )
            geom_names[id(element)] = tm_scene.graph[frame][1]

    root_matrix = np.array(root.transform.matrix)
    for element in root.elements:
        attach(frame_name(f"{root.name}_geometry"), root.name, root_matrix, element)

    for node in root.traverse():
        if node is root:
            continue
        matrix = np.array(node.transform.matrix)
        if node.parent is root:
            matrix = root_matrix @ matrix

        first = node.elements[0] if node.elements else None
        attach(node.name, node.parent.name, matrix, first)
        for element in node.elements[1:]:
            attach(frame_name(f"{node.name}_geometry"), node.name, np.eye(4), element)

    if scene.lights:
        tm_scene.metadata["lights"] = list(scene.lights)
    node_info = {node.name: node.info for node in scene.nodes if node.info}
    if node_info:
        tm_scene.metadata["node_info"] = node_info

    return tm_scene


def save_scene(scene: Scene, path: str | Path) -> None:
    """Write a scene to file; the format follows the file extension.

    A scene without geometry (e.g. everything was pruned) is written as
    a valid empty file, since trimesh refuses to export one.

    Args:
        scene: Scene to write
        path: Output file path

    Raises:
        SceneSaveError: If the format is unsupported or export fails
    """
    path = Path(path)

    if path.suffix.lower() not in SUPPORTED_FORMATS:
        raise SceneSaveError(
            path,
            f"unsupported format {path.suffix or '(none)'}; "
            f"supported: {sorted(SUPPORTED_FORMATS)}"
        )

    try:
        tm_scene = to_trimesh_scene(scene)
        path.parent.mkdir(parents=True, exist_ok=True)
        if tm_scene.geometry:
            tm_scene.export(str(path))
        else:
            logger.warning(f"Scene {scene.name} has no geometry, writing an empty {path.suffix} file")
            _write_empty_scene(scene, path, dict(tm_scene.metadata))
    except Exception as e:
        raise SceneSaveError(path, str(e)) from e

    logger.debug(f"Saved {len(scene)} nodes to {path}")


def _empty_gltf(scene: Scene, metadata: dict[str, Any]) -> dict[str, Any]:
    root: dict[str, Any] = {"name": scene.root.name}
    if not scene.root.transform.is_identity:
        # glTF matrices are column-major
        root["matrix"] = np.asarray(scene.root.transform.matrix).T.ravel().tolist()
    tree: dict[str, Any] = {
        "asset": {"version": "2.0", "generator": "scnconv"},
        "scene": 0,
        "scenes": [{"name": scene.name, "nodes": [0]}],
        "nodes": [root],
    }
    if metadata:
        tree["scenes"][0]["extras"] = metadata
    return tree


def _empty_glb(tree: dict[str, Any]) -> bytes:
    content = json.dumps(tree, separators=(",", ":")).encode("utf-8")
    # Chunks are 4-byte aligned; JSON chunks pad with spaces
    content += b" " * (-len(content) % 4)
    header = struct.pack("<4sII", b"glTF", 2, 12 + 8 + len(content))
    chunk = struct.pack("<I4s", len(content), b"JSON")
    return header + chunk + content


def _empty_collada(scene: Scene) -> str:
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        '<COLLADA xmlns="http://www.collada.org/2005/11/COLLADASchema" version="1.4.1">\n'
        "  <asset><unit meter=\"1\" name=\"meter\"/><up_axis>Y_UP</up_axis></asset>\n"
        "  <library_visual_scenes>\n"
        f'    <visual_scene id="scene" name="{escape(scene.name)}">\n'
        f'      <node id="root" name="{escape(scene.root.name)}"/>\n'
        "    </visual_scene>\n"
        "  </library_visual_scenes>\n"
        '  <scene><instance_visual_scene url="#scene"/></scene>\n'
        "</COLLADA>\n"
    )


def _write_empty_scene(scene: Scene, path: Path, metadata: dict[str, Any]) -> None:
    """Write a valid file holding no geometry; trimesh refuses to export one."""
    suffix = path.suffix.lower()
    if suffix == ".gltf":
        path.write_text(json.dumps(_empty_gltf(scene, metadata), indent=2))
    elif suffix == ".glb":
        path.write_bytes(_empty_glb(_empty_gltf(scene, metadata)))
    elif suffix == ".dae":
        path.write_text(_empty_collada(scene))
    elif suffix == ".obj":
        path.write_text(f"# {scene.name}: no geometry\n")
    elif suffix == ".ply":
        path.write_text(
            "ply\nformat ascii 1.0\n"
            "element vertex 0\nproperty float x\nproperty float y\nproperty float z\n"
            "element face 0\nproperty list uchar int vertex_indices\nend_header\n"
        )
    elif suffix == ".off":
        path.write_text("OFF\n0 0 0\n")
    elif suffix == ".stl":
        path.write_text("solid empty\nendsolid empty\n")
    else:
        raise ValueError(f"no empty scene writer for {suffix}")
