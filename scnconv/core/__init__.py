"""Core modules for scnconv."""

from .config import ConversionConfig, ProcessingParams, SelectionParams, TransformOp
from .errors import (
    MatrixFileError,
    MetadataError,
    SceneConversionError,
    SceneLoadError,
    SceneSaveError,
    SelectionTargetNotFound,
)

__all__ = [
    "ConversionConfig",
    "MatrixFileError",
    "MetadataError",
    "ProcessingParams",
    "SceneConversionError",
    "SceneLoadError",
    "SceneSaveError",
    "SelectionParams",
    "SelectionTargetNotFound",
    "TransformOp",
]
