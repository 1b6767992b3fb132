"""
Pydantic schemas for the placement endpoints.

These only check payload shape. Placement rules (ranges, bounds,
precision) are reported by core.validation as a structured result, so a
candidate with a bad width still reaches the validator instead of being
rejected with a 422.
"""
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from models.position import (
    CoordinateSize,
    PageDimensions,
    PixelPosition,
    PositionArea,
    SignaturePosition,
)


class _CamelModel(BaseModel):
    """Accept `pageNumber` from the UI and `page_number` from scripts."""
    model_config = ConfigDict(populate_by_name=True)


class PageDimensionsIn(_CamelModel):
    """Rendered page size in pixels."""
    width: float = Field(..., gt=0, description="Page width in pixels")
    height: float = Field(..., gt=0, description="Page height in pixels")
    page_number: int = Field(..., ge=1, alias="pageNumber")

    def to_domain(self) -> PageDimensions:
        return PageDimensions(width=self.width, height=self.height, page_number=self.page_number)


class CandidatePosition(_CamelModel):
    """
    A position as sent by the placement UI. Fields are untyped so a
    missing or malformed one comes back as a validation error
    (MISSING_FIELD, INVALID_PAGE_NUMBER, ...) rather than a 422.
    """
    id: Optional[str] = None
    x: Any = None
    y: Any = None
    width: Any = None
    height: Any = None
    page_number: Any = Field(None, alias="pageNumber")
    recipient_id: Any = Field(None, alias="recipientId")


class PositionIn(_CamelModel):
    """A complete percentage-space position."""
    id: Optional[str] = None
    x: float
    y: float
    width: float
    height: float
    page_number: int = Field(..., ge=1, alias="pageNumber")
    recipient_id: str = Field(..., min_length=1, alias="recipientId")

    def to_domain(self) -> SignaturePosition:
        return SignaturePosition(
            x=self.x,
            y=self.y,
            width=self.width,
            height=self.height,
            page_number=self.page_number,
            recipient_id=self.recipient_id,
        )

    def to_area(self) -> PositionArea:
        return PositionArea.from_position(self.to_domain(), position_id=self.id)


class PixelPositionIn(_CamelModel):
    x: float
    y: float
    width: float
    height: float
    page_number: int = Field(..., ge=1, alias="pageNumber")

    def to_domain(self) -> PixelPosition:
        return PixelPosition(
            x=self.x,
            y=self.y,
            width=self.width,
            height=self.height,
            page_number=self.page_number,
        )


class SizeIn(BaseModel):
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)

    def to_domain(self) -> CoordinateSize:
        return CoordinateSize(width=self.width, height=self.height)


# ============ Requests ============


class BatchValidateRequest(BaseModel):
    positions: List[CandidatePosition] = Field(..., description="Candidate positions")


class ToPixelRequest(_CamelModel):
    positions: List[PositionIn]
    pages: List[PageDimensionsIn] = Field(..., min_length=1)
    precision: Optional[int] = Field(None, ge=0)


class ToPercentageRequest(_CamelModel):
    positions: List[PixelPositionIn]
    recipient_ids: List[str] = Field(..., alias="recipientIds")
    pages: List[PageDimensionsIn] = Field(..., min_length=1)
    precision: Optional[int] = Field(None, ge=0)


class ConflictCheckRequest(BaseModel):
    """Candidate plus the accepted positions it must not collide with."""
    candidate: PositionIn
    existing: List[PositionIn] = Field(default_factory=list)
    threshold: Optional[float] = Field(None, ge=0, le=1)

    @model_validator(mode="after")
    def _keep_same_page(self) -> "ConflictCheckRequest":
        # Positions on other pages can never overlap the candidate
        page = self.candidate.page_number
        self.existing = [p for p in self.existing if p.page_number == page]
        return self


class SuggestionRequest(_CamelModel):
    existing: List[PositionIn] = Field(default_factory=list)
    page_number: int = Field(..., ge=1, alias="pageNumber")
    desired_size: Optional[SizeIn] = Field(None, alias="desiredSize")
    grid_step: Optional[float] = Field(None, gt=0, alias="gridStep")


class OptimizeRequest(_CamelModel):
    positions: List[PositionIn]
    page_number: int = Field(..., ge=1, alias="pageNumber")
    max_iterations: Optional[int] = Field(None, ge=0, le=100, alias="maxIterations")


# ============ Responses ============


class _CamelOut(BaseModel):
    """Responses use camelCase keys, like the validation and conflict payloads."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AreaOut(_CamelOut):
    id: Optional[str] = None
    x: float
    y: float
    width: float
    height: float
    recipient_id: Optional[str] = None
    page_number: Optional[int] = None

    @classmethod
    def from_domain(cls, area: PositionArea) -> "AreaOut":
        return cls(
            id=area.id,
            x=area.x,
            y=area.y,
            width=area.width,
            height=area.height,
            recipient_id=area.recipient_id,
            page_number=area.page_number,
        )


class OptimizeResponse(_CamelOut):
    positions: List[AreaOut]
    iterations: int
    remaining_conflicts: int
    conflict_free: bool


class HealthCheck(_CamelOut):
    """Health check response."""
    ok: bool = True
    max_positions: int
    overlap_threshold: float
