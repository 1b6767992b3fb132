"""
Pydantic schemas for API request/response validation.
"""
from .position import (
    AreaOut,
    BatchValidateRequest,
    CandidatePosition,
    ConflictCheckRequest,
    HealthCheck,
    OptimizeRequest,
    OptimizeResponse,
    PageDimensionsIn,
    PixelPositionIn,
    PositionIn,
    SizeIn,
    SuggestionRequest,
    ToPercentageRequest,
    ToPixelRequest,
)

# Re-export all
__all__ = [
    "AreaOut",
    "BatchValidateRequest",
    "CandidatePosition",
    "ConflictCheckRequest",
    "HealthCheck",
    "OptimizeRequest",
    "OptimizeResponse",
    "PageDimensionsIn",
    "PixelPositionIn",
    "PositionIn",
    "SizeIn",
    "SuggestionRequest",
    "ToPercentageRequest",
    "ToPixelRequest",
]
