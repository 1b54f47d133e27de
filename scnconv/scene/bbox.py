"""Axis-aligned bounding boxes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from .transform import AffineTransform


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box given by its min and max corners.

    A box whose min exceeds its max on any axis is empty. Empty boxes
    contain nothing and intersect nothing, which is how "no bbox filter"
    is expressed by callers.
    """

    min: NDArray[np.float64]
    max: NDArray[np.float64]

    def __post_init__(self) -> None:
        object.__setattr__(self, "min", np.asarray(self.min, dtype=np.float64).reshape(3))
        object.__setattr__(self, "max", np.asarray(self.max, dtype=np.float64).reshape(3))

    @classmethod
    def empty(cls) -> BoundingBox:
        """Return the canonical empty box."""
        return cls(np.full(3, np.inf), np.full(3, -np.inf))

    @classmethod
    def from_corners(
        cls,
        x0: float, y0: float, z0: float,
        x1: float, y1: float, z1: float,
    ) -> BoundingBox:
        """Create a box from explicit (x0, y0, z0) and (x1, y1, z1) corners.

        The corners are taken as given, so x0 > x1 yields an empty box.
        """
        return cls(np.array([x0, y0, z0]), np.array([x1, y1, z1]))

    @classmethod
    def from_points(cls, points: NDArray[np.float64]) -> BoundingBox:
        """Smallest box containing an Nx3 array of points."""
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if len(points) == 0:
            return cls.empty()
        return cls(points.min(axis=0), points.max(axis=0))

    @classmethod
    def union_all(cls, boxes: Iterable[BoundingBox]) -> BoundingBox:
        """Smallest box containing every box in ``boxes``."""
        result = cls.empty()
        for box in boxes:
            result = result.union(box)
        return result

    @property
    def is_empty(self) -> bool:
        return bool(np.any(self.min > self.max))

    @property
    def size(self) -> NDArray[np.float64]:
        """Extent along each axis (zeros for an empty box)."""
        if self.is_empty:
            return np.zeros(3)
        return self.max - self.min

    @property
    def corners(self) -> NDArray[np.float64]:
        """The eight corners as an 8x3 array."""
        lo, hi = self.min, self.max
        return np.array([
            [lo[0], lo[1], lo[2]],
            [lo[0], lo[1], hi[2]],
            [lo[0], hi[1], lo[2]],
            [lo[0], hi[1], hi[2]],
            [hi[0], lo[1], lo[2]],
            [hi[0], lo[1], hi[2]],
            [hi[0], hi[1], lo[2]],
            [hi[0], hi[1], hi[2]],
        ])

    def intersects(self, other: BoundingBox) -> bool:
        """True if the two closed boxes share at least one point."""
        if self.is_empty or other.is_empty:
            return False
        return bool(np.all(self.min <= other.max) and np.all(other.min <= self.max))

    def contains_point(self, point: Sequence[float]) -> bool:
        p = np.asarray(point, dtype=np.float64)
        return bool(np.all(self.min <= p) and np.all(p <= self.max))

    def union(self, other: BoundingBox) -> BoundingBox:
        if other.is_empty:
            return self
        if self.is_empty:
            return other
        return BoundingBox(np.minimum(self.min, other.min), np.maximum(self.max, other.max))

    def transformed(self, transform: AffineTransform) -> BoundingBox:
        """Box enclosing this box after an affine transform."""
        if self.is_empty:
            return self
        return BoundingBox.from_points(transform.apply_to_points(self.corners))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoundingBox):
            return NotImplemented
        if self.is_empty and other.is_empty:
            return True
        return bool(np.array_equal(self.min, other.min) and np.array_equal(self.max, other.max))

    def __hash__(self) -> int:
        if self.is_empty:
            return hash("empty")
        return hash((self.min.tobytes(), self.max.tobytes()))

    def __repr__(self) -> str:
        if self.is_empty:
            return "BoundingBox(empty)"
        return f"BoundingBox(min={self.min.round(4).tolist()}, max={self.max.round(4).tolist()})"
