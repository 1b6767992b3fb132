from __future__ import annotations

from .position import (
    COORDINATE_ERROR_MESSAGES,
    ConflictDetectionResult,
    ConflictInfo,
    ConflictSeverity,
    CoordinateError,
    CoordinateErrorType,
    CoordinatePoint,
    CoordinateSize,
    CoordinateSystem,
    CoordinateValidationResult,
    LayoutOptimizationResult,
    PageDimensions,
    PixelPoint,
    PixelPosition,
    PixelSize,
    PositionArea,
    SignaturePosition,
)

__all__ = [
    "COORDINATE_ERROR_MESSAGES",
    "ConflictDetectionResult",
    "ConflictInfo",
    "ConflictSeverity",
    "CoordinateError",
    "CoordinateErrorType",
    "CoordinatePoint",
    "CoordinateSize",
    "CoordinateSystem",
    "CoordinateValidationResult",
    "LayoutOptimizationResult",
    "PageDimensions",
    "PixelPoint",
    "PixelPosition",
    "PixelSize",
    "PositionArea",
    "SignaturePosition",
]
