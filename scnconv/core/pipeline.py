"""Scene conversion pipeline.

Runs every conversion stage in its fixed order against one in-memory
scene: read, attach metadata, prune, transform the root, geometry
processing, write. Each stage is timed and reported so the command line
can print what happened.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from ..mesh.loader import load_scene, save_scene
from ..mesh.metadata import read_categories, read_lights
from ..mesh.processing import (
    remove_hierarchy,
    remove_references,
    remove_transformations,
    subdivide_triangles,
)
from ..scene.composer import TransformComposer
from ..scene.scene import Scene
from ..scene.selection import prune_scene
from .config import ConversionConfig

logger = logging.getLogger(__name__)


@dataclass
class StageReport:
    """What one pipeline stage did.

    Attributes:
        stage: Stage identifier (e.g. "read", "prune", "write")
        seconds: Wall-clock time spent in the stage
        path: File the stage read or wrote, if any
        result: Stage-specific count (nodes removed, lights added, ...)
        stats: Scene statistics after the stage, for read and write
    """

    stage: str
    seconds: float
    path: Path | None = None
    result: Any = None
    stats: dict[str, Any] | None = None


@dataclass
class ConversionResult:
    """Outcome of a full conversion."""

    scene: Scene
    reports: list[StageReport] = field(default_factory=list)

    def report(self, stage: str) -> StageReport | None:
        for report in self.reports:
            if report.stage == stage:
                return report
        return None


class SceneConverter:
    """Run the conversion stages for one configuration.

    Example:
        >>> cfg = ConversionConfig()
        >>> cfg.add_transform("scale", 2.0)
        >>> SceneConverter(cfg).convert("in.glb", "out.glb")
    """

    def __init__(
        self,
        config: ConversionConfig,
        on_stage: Callable[[StageReport], None] | None = None,
    ) -> None:
        self.config = config
        self.on_stage = on_stage
        self.composer: TransformComposer | None = None

    def _record(self, result: ConversionResult, report: StageReport) -> None:
        result.reports.append(report)
        if self.on_stage is not None:
            self.on_stage(report)

    def _run(
        self,
        result: ConversionResult,
        stage: str,
        func: Callable[[], Any],
        path: Path | None = None,
    ) -> Any:
        start = time.perf_counter()
        value = func()
        report = StageReport(
            stage=stage,
            seconds=time.perf_counter() - start,
            path=path,
            result=value,
        )
        if stage == "write":
            report.stats = result.scene.stats()
        self._record(result, report)
        return value

    def compose_transforms(self) -> TransformComposer:
        """Accumulate the configured transform edits, reading matrix files."""
        composer = TransformComposer()
        composer.apply_ops(self.config.transforms)
        return composer

    def read(self, input_path: str | Path) -> ConversionResult:
        """Read the input scene and attach category/light metadata.

        Transform edits are composed first, so unreadable matrix files
        are reported before the scene is loaded.
        """
        input_path = Path(input_path)
        cfg = self.config
        self.composer = self.compose_transforms()

        start = time.perf_counter()
        scene = load_scene(input_path)
        result = ConversionResult(scene=scene)
        self._record(result, StageReport(
            stage="read",
            seconds=time.perf_counter() - start,
            path=input_path,
            stats=scene.stats(),
        ))

        if cfg.categories_file is not None:
            path = cfg.categories_file
            self._run(result, "categories", lambda: read_categories(scene, path), path)

        if cfg.lights_file is not None:
            path = cfg.lights_file
            self._run(result, "lights", lambda: read_lights(scene, path), path)

        return result

    def edit(self, result: ConversionResult) -> ConversionResult:
        """Prune, transform and process the scene in place."""
        cfg = self.config
        scene = result.scene

        selection = cfg.selection.to_filter()
        if selection.is_active:
            self._run(result, "prune", lambda: prune_scene(scene, selection))

        composer = self.composer or self.compose_transforms()
        if not composer.is_identity:
            self._run(result, "transform", lambda: composer.apply_to_scene(scene))

        processing = cfg.processing
        if processing.remove_references:
            self._run(result, "remove_references", lambda: remove_references(scene))
        if processing.remove_hierarchy:
            self._run(result, "remove_hierarchy", lambda: remove_hierarchy(scene))
        if processing.remove_transformations:
            self._run(result, "remove_transformations", lambda: remove_transformations(scene))
        if processing.max_edge_length > 0:
            length = processing.max_edge_length
            self._run(result, "subdivide", lambda: subdivide_triangles(scene, length))

        return result

    def write(self, result: ConversionResult, output_path: str | Path) -> ConversionResult:
        """Write the scene to ``output_path``."""
        output_path = Path(output_path)
        self._run(result, "write", lambda: save_scene(result.scene, output_path), output_path)
        return result

    def convert(self, input_path: str | Path, output_path: str | Path) -> ConversionResult:
        """Run every stage from reading ``input_path`` to writing ``output_path``.

        Raises:
            SceneConversionError: On any fatal stage failure; the output
                file may be missing or incomplete in that case
        """
        logger.info(f"Converting {input_path} -> {output_path}")
        result = self.read(input_path)
        self.edit(result)
        self.write(result, output_path)
        return result


def convert_scene(
    input_path: str | Path,
    output_path: str | Path,
    config: ConversionConfig | None = None,
) -> ConversionResult:
    """Convenience function to convert a scene file in one call."""
    return SceneConverter(config or ConversionConfig.default()).convert(input_path, output_path)
