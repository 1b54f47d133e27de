"""Exception types raised while converting a scene.

Everything raised on purpose by scnconv derives from SceneConversionError,
so the command line can report any of them the same way.
"""

from __future__ import annotations

from pathlib import Path


class SceneConversionError(Exception):
    """Base class for conversion failures."""


class SceneLoadError(SceneConversionError):
    """The input scene could not be read or parsed."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Unable to read scene from {self.path}: {reason}")


class SceneSaveError(SceneConversionError):
    """The output scene could not be written."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Unable to write scene to {self.path}: {reason}")


class MetadataError(SceneConversionError):
    """A category or light table could not be read."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Unable to read metadata from {self.path}: {reason}")


class SelectionTargetNotFound(SceneConversionError):
    """The node named as the root of the selected subtree does not exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unable to find select subtree node {name}")


class MatrixFileError(SceneConversionError):
    """A transformation matrix file is missing or malformed.

    Unlike the other errors this one is recoverable: the transform step
    that referenced the file is skipped.
    """

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Unable to read matrix file {self.path}: {reason}")
