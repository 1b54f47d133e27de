"""Category and light tables attached to a loaded scene.

Both tables are keyed by model id. A node matches a model id when its own
name, or the name of one of its geometry elements, equals the id. The
table contents are carried along untouched; nothing here interprets them.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Iterator

from ..core.errors import MetadataError
from ..scene.scene import Scene, SceneNode

logger = logging.getLogger(__name__)


def _node_keys(node: SceneNode) -> set[str]:
    keys = {node.name}
    for element in node.elements:
        metadata = getattr(element, "metadata", None) or {}
        name = metadata.get("name")
        if name:
            keys.add(str(name))
    return keys


def _matching_nodes(scene: Scene, model_id: str) -> Iterator[SceneNode]:
    for node in scene.nodes:
        if model_id in _node_keys(node):
            yield node


def read_categories(scene: Scene, path: str | Path) -> int:
    """Attach category rows from a CSV file to matching nodes.

    The file needs a header row. Rows are keyed by the ``model_id`` column,
    or by the first column when there is none. Each matching node gets the
    row merged into its ``info`` dict.

    Args:
        scene: Scene to annotate
        path: Path to the CSV file

    Returns:
        Number of nodes annotated

    Raises:
        MetadataError: If the file cannot be read or has no header
    """
    path = Path(path)
    try:
        with open(path, newline="") as f:
            reader = csv.DictReader(f)
            if not reader.fieldnames:
                raise MetadataError(path, "missing header row")
            key = "model_id" if "model_id" in reader.fieldnames else reader.fieldnames[0]
            rows = {row[key]: row for row in reader if row.get(key)}
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise MetadataError(path, str(e)) from e

    annotated = 0
    for node in scene.nodes:
        matches = [rows[k] for k in sorted(_node_keys(node)) if k in rows]
        if not matches:
            continue
        for row in matches:
            node.info.update(row)
        annotated += 1

    logger.info(f"Read {len(rows)} categories from {path}, annotated {annotated} nodes")
    return annotated


def read_lights(scene: Scene, path: str | Path) -> int:
    """Attach lights from a JSON file to the scene.

    The file holds an object mapping model ids to a light description or a
    list of them. Every light whose model id matches a node is appended to
    ``scene.lights`` with a ``node`` entry naming that node.

    Args:
        scene: Scene to add lights to
        path: Path to the JSON file

    Returns:
        Number of lights added

    Raises:
        MetadataError: If the file cannot be read or is not a JSON object
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MetadataError(path, str(e)) from e

    if not isinstance(data, dict):
        raise MetadataError(path, "expected a JSON object keyed by model id")

    added = 0
    for model_id, lights in data.items():
        if isinstance(lights, dict):
            lights = [lights]
        if not isinstance(lights, list):
            raise MetadataError(path, f"lights for {model_id!r} must be an object or a list")

        for node in _matching_nodes(scene, str(model_id)):
            for light in lights:
                entry: dict[str, Any] = dict(light) if isinstance(light, dict) else {"value": light}
                entry["node"] = node.name
                scene.lights.append(entry)
                added += 1

    logger.info(f"Read lights from {path}, added {added}")
    return added
