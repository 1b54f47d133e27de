"""Configuration management for scnconv.

This module defines all configuration models using Pydantic for validation.
Configuration can be loaded from JSON files, built from command-line
options, or constructed programmatically.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field, model_validator

if TYPE_CHECKING:
    from ..scene.selection import SelectionFilter

TransformKind = Literal[
    "scale",
    "tx", "ty", "tz",
    "sx", "sy", "sz",
    "rx", "ry", "rz",
    "xform",
]

TRANSFORM_KINDS: tuple[str, ...] = (
    "scale",
    "tx", "ty", "tz",
    "sx", "sy", "sz",
    "rx", "ry", "rz",
    "xform",
)


class SelectionParams(BaseModel):
    """Which nodes survive the selection pass.

    Leaving both fields unset disables pruning entirely.
    """

    subtree: str | None = Field(
        default=None,
        description="Keep only this node, its ancestors and its descendants"
    )
    bbox: tuple[float, float, float, float, float, float] | None = Field(
        default=None,
        description="World-space region (x0, y0, z0, x1, y1, z1); nodes outside it are removed"
    )

    @property
    def is_active(self) -> bool:
        return self.to_filter().is_active

    def to_filter(self) -> SelectionFilter:
        """Build the SelectionFilter used by the pruning pass."""
        from ..scene.bbox import BoundingBox
        from ..scene.selection import SelectionFilter

        bbox = BoundingBox.from_corners(*self.bbox) if self.bbox else BoundingBox.empty()
        return SelectionFilter(bbox=bbox, subtree_name=self.subtree)


class TransformOp(BaseModel):
    """One placement edit, applied in list order.

    ``value`` is a scale factor for ``scale``/``sx``/``sy``/``sz``, a
    distance for ``tx``/``ty``/``tz``, an angle in degrees for
    ``rx``/``ry``/``rz`` and a matrix file path for ``xform``.
    """

    kind: TransformKind = Field(description="Operation type")
    value: float | str = Field(description="Operation argument")

    @model_validator(mode="after")
    def _coerce_value(self) -> TransformOp:
        if self.kind == "xform":
            self.value = str(self.value)
        else:
            try:
                self.value = float(self.value)
            except ValueError:
                raise ValueError(
                    f"Transform '{self.kind}' needs a number, got {self.value!r}"
                ) from None
        return self


class ProcessingParams(BaseModel):
    """Whole-scene geometry operations run after selection and transform."""

    remove_references: bool = Field(default=False, description="Give every node its own copy of shared geometry")
    remove_hierarchy: bool = Field(default=False, description="Move all geometry nodes directly under the root")
    remove_transformations: bool = Field(default=False, description="Bake node transforms into geometry")
    max_edge_length: float = Field(
        default=0.0,
        description="Subdivide triangles with longer edges (0 or less = disabled)"
    )


class ConversionConfig(BaseModel):
    """Main configuration container."""

    categories_file: Path | None = Field(
        default=None,
        description="CSV table of model categories to attach to nodes"
    )
    lights_file: Path | None = Field(
        default=None,
        description="JSON table of lights to attach to the scene"
    )
    selection: SelectionParams = Field(default_factory=SelectionParams)
    transforms: list[TransformOp] = Field(
        default_factory=list,
        description="Placement edits composed onto the scene root, in order"
    )
    processing: ProcessingParams = Field(default_factory=ProcessingParams)
    verbose: bool = Field(default=False, description="Print statistics for each stage")

    @classmethod
    def from_file(cls, path: Path | str) -> ConversionConfig:
        """Load configuration from a JSON file."""
        path = Path(path)
        with open(path) as f:
            data = json.load(f)
        return cls.model_validate(data)

    def to_file(self, path: Path | str) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)

    @classmethod
    def default(cls) -> ConversionConfig:
        """Create a default configuration (plain format conversion)."""
        return cls()

    def add_transform(self, kind: str, value: float | str) -> TransformOp:
        """Append a placement edit and return it."""
        op = TransformOp(kind=kind, value=value)
        self.transforms.append(op)
        return op
