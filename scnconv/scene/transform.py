"""Affine transformation utilities for scene nodes.

Provides AffineTransform, an immutable 4x4 homogeneous matrix with the
primitive constructors (translate, scale, rotate per axis) used to edit
node placement, and a reader for row-major matrix files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import numpy as np
from numpy.typing import NDArray
from scipy.spatial.transform import Rotation

from ..core.errors import MatrixFileError

Axis = Literal["x", "y", "z"]

_AXIS_INDEX = {"x": 0, "y": 1, "z": 2}


def _axis_index(axis: str) -> int:
    try:
        return _AXIS_INDEX[axis.lower()]
    except KeyError:
        raise ValueError(f"Unknown axis: {axis!r}. Expected one of x, y, z") from None


@dataclass(frozen=True)
class AffineTransform:
    """Affine transformation stored as a 4x4 homogeneous matrix.

    Points are column vectors, so a transform maps ``p`` to ``matrix @ p``.
    Instances are never modified in place; every operation returns a new
    transform.

    Attributes:
        matrix: 4x4 float64 matrix
    """

    matrix: NDArray[np.float64] = field(default_factory=lambda: np.eye(4, dtype=np.float64))

    def __post_init__(self) -> None:
        matrix = np.array(self.matrix, dtype=np.float64)
        if matrix.shape != (4, 4):
            raise ValueError(f"Transform matrix must be 4x4, got shape {matrix.shape}")
        matrix.setflags(write=False)
        object.__setattr__(self, "matrix", matrix)

    @classmethod
    def identity(cls) -> AffineTransform:
        """Return the identity transform."""
        return cls()

    @classmethod
    def from_matrix(cls, matrix: NDArray[np.float64] | list[list[float]]) -> AffineTransform:
        """Wrap an existing 4x4 matrix."""
        return cls(np.asarray(matrix, dtype=np.float64))

    @classmethod
    def translation(cls, axis: Axis, distance: float) -> AffineTransform:
        """Translation along a single axis."""
        m = np.eye(4, dtype=np.float64)
        m[_axis_index(axis), 3] = distance
        return cls(m)

    @classmethod
    def axis_scale(cls, axis: Axis, factor: float) -> AffineTransform:
        """Scale along a single axis."""
        m = np.eye(4, dtype=np.float64)
        i = _axis_index(axis)
        m[i, i] = factor
        return cls(m)

    @classmethod
    def uniform_scale(cls, factor: float) -> AffineTransform:
        """Scale all three axes by the same factor."""
        m = np.eye(4, dtype=np.float64)
        m[0, 0] = m[1, 1] = m[2, 2] = factor
        return cls(m)

    @classmethod
    def rotation(cls, axis: Axis, radians: float) -> AffineTransform:
        """Right-handed rotation about a single axis, angle in radians."""
        m = np.eye(4, dtype=np.float64)
        m[:3, :3] = Rotation.from_euler(axis.lower(), radians).as_matrix()
        return cls(m)

    def then(self, other: AffineTransform) -> AffineTransform:
        """Compose with another transform.

        The result applies self first, then other.

        Args:
            other: Transform to apply after this one

        Returns:
            Combined AffineTransform
        """
        return AffineTransform(other.matrix @ self.matrix)

    def scale(self, factor: float) -> AffineTransform:
        """Post-multiply a uniform scale onto this transform.

        The scale is applied to points before the existing transform.
        """
        return AffineTransform(self.matrix @ AffineTransform.uniform_scale(factor).matrix)

    def inverse(self) -> AffineTransform:
        """Return the inverse transformation.

        Raises:
            numpy.linalg.LinAlgError: If the matrix is singular
        """
        return AffineTransform(np.linalg.inv(self.matrix))

    @property
    def is_identity(self) -> bool:
        """True if the matrix equals the identity (to 1e-12)."""
        return bool(np.allclose(self.matrix, np.eye(4), rtol=0.0, atol=1e-12))

    def apply_to_points(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        """Apply transformation to an Nx3 array of points.

        Args:
            points: Nx3 array of XYZ coordinates

        Returns:
            Transformed Nx3 array of points
        """
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)

        # Convert to homogeneous coordinates (Nx4)
        ones = np.ones((len(points), 1), dtype=np.float64)
        homogeneous = np.hstack([points, ones])

        transformed = (self.matrix @ homogeneous.T).T
        return transformed[:, :3]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AffineTransform):
            return NotImplemented
        return bool(np.array_equal(self.matrix, other.matrix))

    def __hash__(self) -> int:
        return hash(self.matrix.tobytes())

    def __repr__(self) -> str:
        if self.is_identity:
            return "AffineTransform(identity)"
        rows = ", ".join(
            "[" + ", ".join(f"{v:.4g}" for v in row) + "]" for row in self.matrix
        )
        return f"AffineTransform([{rows}])"


def read_matrix_file(path: str | Path) -> AffineTransform:
    """Read a 4x4 matrix from a text file.

    The file holds 16 whitespace-separated numbers in row-major order.
    Anything after the sixteenth value is ignored.

    Args:
        path: Path to the matrix file

    Returns:
        AffineTransform wrapping the matrix

    Raises:
        MatrixFileError: If the file cannot be read or holds fewer than
            16 numeric values
    """
    path = Path(path)
    try:
        text = path.read_text()
    except (OSError, UnicodeDecodeError) as e:
        raise MatrixFileError(path, str(e)) from e

    tokens = text.split()
    if len(tokens) < 16:
        raise MatrixFileError(path, f"expected 16 values, found {len(tokens)}")

    try:
        values = [float(token) for token in tokens[:16]]
    except ValueError as e:
        raise MatrixFileError(path, str(e)) from e

    return AffineTransform.from_matrix(np.array(values).reshape(4, 4))
