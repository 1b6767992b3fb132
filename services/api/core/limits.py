"""
Coordinate system limits and conflict policy for field placement.

Every number the geometry engine depends on lives here, with its default.
Callers that need different bounds build their own instance instead of
relying on implicit fallbacks.
"""
from __future__ import annotations

from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CoordinateLimits(BaseModel):
    """
    Bounds for a placed field in percentage space (0-100).

    Defaults:
    - width in [1, 50], height in [0.5, 30]
    - page numbers in [1, 1000]
    - 2 decimals for conversions, at most 4 decimals on any stored value
    """
    model_config = ConfigDict(frozen=True)

    min_percentage: float = Field(0.0, description="Lowest coordinate value")
    max_percentage: float = Field(100.0, description="Highest coordinate value")

    min_width: float = Field(1.0, gt=0, description="Minimum field width (%)")
    max_width: float = Field(50.0, gt=0, description="Maximum field width (%)")
    min_height: float = Field(0.5, gt=0, description="Minimum field height (%)")
    max_height: float = Field(30.0, gt=0, description="Maximum field height (%)")

    min_page_number: int = Field(1, ge=1, description="First page (1-based)")
    max_page_number: int = Field(1000, ge=1, description="Last page accepted")

    default_precision: int = Field(2, ge=0, description="Decimals kept by conversions")
    max_precision: int = Field(4, ge=0, description="Max decimals on any coordinate")

    edge_warning_margin: float = Field(
        5.0,
        ge=0,
        description="Warn when the right/bottom edge is this close to the page edge",
    )
    max_batch_size: int = Field(
        500,
        ge=1,
        description="Max positions accepted by batch validation",
    )

    @model_validator(mode="after")
    def _check_bands(self) -> "CoordinateLimits":
        if self.min_percentage >= self.max_percentage:
            raise ValueError("min_percentage must be below max_percentage")
        if self.min_width > self.max_width:
            raise ValueError(f"min_width ({self.min_width}) > max_width ({self.max_width})")
        if self.min_height > self.max_height:
            raise ValueError(f"min_height ({self.min_height}) > max_height ({self.max_height})")
        if self.min_page_number > self.max_page_number:
            raise ValueError("min_page_number must not exceed max_page_number")
        if self.default_precision > self.max_precision:
            raise ValueError("default_precision must not exceed max_precision")
        return self

    def clamp_precision(self, precision: int | None) -> int:
        """Resolve a caller precision into [0, max_precision]."""
        if precision is None:
            return self.default_precision
        return max(0, min(int(precision), self.max_precision))


class ConflictPolicy(BaseModel):
    """
    Thresholds used by conflict detection and layout search.

    Severity is decided by the overlap ratio alone:
      ratio <= low_severity_max    -> low
      ratio <= medium_severity_max -> medium
      otherwise                    -> high
    """
    model_config = ConfigDict(frozen=True)

    default_threshold: float = Field(0.20, ge=0, le=1)
    low_severity_max: float = Field(0.35, ge=0, le=1)
    medium_severity_max: float = Field(0.50, ge=0, le=1)

    suggestion_threshold: float = Field(0.10, ge=0, le=1)
    max_suggestions: int = Field(10, ge=1)
    default_grid_step: float = Field(5.0, gt=0)
    default_suggestion_size: Tuple[float, float] = Field((15.0, 5.0))

    optimizer_step_x: float = Field(5.0, gt=0)
    optimizer_step_y: float = Field(10.0, gt=0)
    max_iterations: int = Field(10, ge=0)

    max_positions: int = Field(
        500,
        ge=1,
        description="Cap for the quadratic scans (internal conflicts, optimizer)",
    )

    @model_validator(mode="after")
    def _check_breakpoints(self) -> "ConflictPolicy":
        if self.low_severity_max > self.medium_severity_max:
            raise ValueError("low_severity_max must not exceed medium_severity_max")
        return self


DEFAULT_LIMITS = CoordinateLimits()
DEFAULT_POLICY = ConflictPolicy()

# Float slack when comparing summed edges against the page boundary
EDGE_EPSILON = 1e-9
