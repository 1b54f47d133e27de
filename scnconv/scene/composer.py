"""Accumulation of placement edits into a single root transform.

Edits (scale, per-axis translate/scale/rotate, matrix files) are fed to a
TransformComposer in command-line order. The composer keeps one accumulated
AffineTransform, which is applied to the scene root exactly once at the end.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from ..core.errors import MatrixFileError
from .transform import AffineTransform, Axis, read_matrix_file

if TYPE_CHECKING:
    from ..core.config import TransformOp
    from .scene import Scene

logger = logging.getLogger(__name__)


class TransformComposer:
    """Build up an affine transform from a sequence of edit operations.

    Each operation except :meth:`scale` replaces the accumulated transform
    with "identity, then the new primitive, then everything accumulated so
    far". Uniform scale instead post-multiplies onto the current transform.

    Example:
        >>> composer = TransformComposer()
        >>> composer.translate("x", 5.0)
        >>> composer.scale_axis("x", 2.0)
        >>> composer.current.apply_to_points([[1.0, 0.0, 0.0]])
        array([[7., 0., 0.]])
    """

    def __init__(self, initial: AffineTransform | None = None) -> None:
        self.current = initial or AffineTransform.identity()

    @property
    def is_identity(self) -> bool:
        return self.current.is_identity

    def _push(self, primitive: AffineTransform) -> None:
        self.current = AffineTransform.identity().then(primitive).then(self.current)

    def scale(self, factor: float) -> None:
        """Uniform scale, post-multiplied onto the accumulated transform."""
        self.current = self.current.scale(factor)

    def translate(self, axis: Axis, distance: float) -> None:
        self._push(AffineTransform.translation(axis, distance))

    def scale_axis(self, axis: Axis, factor: float) -> None:
        self._push(AffineTransform.axis_scale(axis, factor))

    def rotate(self, axis: Axis, degrees: float) -> None:
        """Rotate about an axis; the angle is given in degrees."""
        self._push(AffineTransform.rotation(axis, math.pi * degrees / 180.0))

    def load_matrix(self, path: str | Path) -> bool:
        """Compose a 4x4 matrix read from a file.

        A missing or malformed file is logged and skipped, leaving the
        accumulated transform as it was.

        Returns:
            True if the matrix was applied
        """
        try:
            matrix = read_matrix_file(path)
        except MatrixFileError as e:
            logger.error(str(e))
            return False
        self._push(matrix)
        return True

    def apply_op(self, op: TransformOp) -> None:
        """Apply one configured operation."""
        kind = op.kind
        if kind == "scale":
            self.scale(float(op.value))
        elif kind == "xform":
            self.load_matrix(str(op.value))
        elif kind[0] == "t":
            self.translate(kind[1], float(op.value))
        elif kind[0] == "s":
            self.scale_axis(kind[1], float(op.value))
        elif kind[0] == "r":
            self.rotate(kind[1], float(op.value))
        else:
            raise ValueError(f"Unknown transform operation: {kind}")

    def apply_ops(self, ops: Iterable[TransformOp]) -> None:
        for op in ops:
            self.apply_op(op)

    def apply_to_scene(self, scene: Scene) -> bool:
        """Compose the accumulated transform onto the scene root.

        The accumulated transform is applied before the root's existing
        transform. Nothing is written when the accumulated transform is the
        identity.

        Returns:
            True if the root transform was changed
        """
        if self.is_identity:
            return False

        root = scene.root
        root.transform = AffineTransform.identity().then(self.current).then(root.transform)
        logger.debug(f"Root transform set to {root.transform!r}")
        return True


def compose_transform(ops: Iterable[TransformOp]) -> AffineTransform:
    """Accumulate ``ops`` into a single transform."""
    composer = TransformComposer()
    composer.apply_ops(ops)
    return composer.current
