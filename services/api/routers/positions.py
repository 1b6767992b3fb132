"""
Field placement endpoints: validation, conversion and conflict checks.

Nothing is persisted here. The caller stores an accepted position itself
once validation and conflict checks pass.
"""
from __future__ import annotations

from logging import getLogger
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends

from core.conflicts import (
    detect_batch_conflicts,
    get_suggested_positions,
    optimize_position_layout,
)
from core.converter import (
    batch_pixel_positions_to_signature,
    batch_signature_positions_to_pixel,
    create_page_dimensions_map,
)
from core.limits import ConflictPolicy, CoordinateLimits
from core.validation import (
    validate_multiple_signature_positions,
    validate_signature_position,
)
from schemas.position import (
    AreaOut,
    BatchValidateRequest,
    CandidatePosition,
    ConflictCheckRequest,
    OptimizeRequest,
    OptimizeResponse,
    SuggestionRequest,
    ToPercentageRequest,
    ToPixelRequest,
)
from settings import get_settings

logger = getLogger(__name__)
router = APIRouter(prefix="/positions", tags=["positions"])


def get_limits() -> CoordinateLimits:
    return get_settings().coordinate_limits()


def get_policy() -> ConflictPolicy:
    return get_settings().conflict_policy()


Limits = Annotated[CoordinateLimits, Depends(get_limits)]
Policy = Annotated[ConflictPolicy, Depends(get_policy)]


@router.post("/validate")
async def validate_position(payload: CandidatePosition, limits: Limits) -> Dict[str, Any]:
    """
    Validate one candidate position.

    Always answers 200; `isValid` tells the UI whether to accept it.
    """
    result = validate_signature_position(payload.model_dump(), limits)
    if not result.is_valid:
        logger.info(f"Position rejected: {[e.kind.value for e in result.errors]}")
    return result.to_api()


@router.post("/validate-batch")
async def validate_positions(payload: BatchValidateRequest, limits: Limits) -> Dict[str, Any]:
    """Gate a whole batch (e.g. template import) with strict overlap checks."""
    result = validate_multiple_signature_positions(
        [p.model_dump() for p in payload.positions], limits
    )
    logger.info(
        f"Batch validation: {len(payload.positions)} positions, "
        f"{len(result.errors)} errors, valid={result.is_valid}"
    )
    return result.to_api()


@router.post("/to-pixel")
async def to_pixel(payload: ToPixelRequest, limits: Limits) -> Dict[str, Any]:
    page_map = create_page_dimensions_map(p.to_domain() for p in payload.pages)
    pixels = batch_signature_positions_to_pixel(
        [p.to_domain() for p in payload.positions],
        page_map,
        payload.precision,
        limits,
    )
    return {"positions": [p.to_api() for p in pixels]}


@router.post("/to-percentage")
async def to_percentage(payload: ToPercentageRequest, limits: Limits) -> Dict[str, Any]:
    page_map = create_page_dimensions_map(p.to_domain() for p in payload.pages)
    positions = batch_pixel_positions_to_signature(
        [p.to_domain() for p in payload.positions],
        payload.recipient_ids,
        page_map,
        payload.precision,
        limits,
    )
    return {"positions": [p.to_api() for p in positions]}


@router.post("/conflicts")
async def check_conflicts(payload: ConflictCheckRequest, policy: Policy) -> Dict[str, Any]:
    """Check a candidate against the accepted positions on its page."""
    result = detect_batch_conflicts(
        payload.candidate.to_area(),
        [p.to_area() for p in payload.existing],
        payload.threshold,
        policy,
    )
    if result.has_conflict:
        logger.info(f"Conflict check: {result.message}")
    return result.to_api()


@router.post("/suggestions")
async def suggest_positions(payload: SuggestionRequest, policy: Policy) -> Dict[str, Any]:
    suggestions = get_suggested_positions(
        [p.to_area() for p in payload.existing],
        payload.page_number,
        payload.desired_size.to_domain() if payload.desired_size else None,
        payload.grid_step,
        policy,
    )
    return {"suggestions": [AreaOut.from_domain(s).model_dump(by_alias=True) for s in suggestions]}


@router.post("/optimize", response_model=OptimizeResponse)
async def optimize_layout(payload: OptimizeRequest, policy: Policy) -> OptimizeResponse:
    """
    Run the greedy layout pass. `remaining_conflicts` > 0 means the page
    is still crowded and needs suggestions or manual placement.
    """
    result = optimize_position_layout(
        [p.to_area() for p in payload.positions],
        payload.page_number,
        payload.max_iterations,
        policy,
    )
    return OptimizeResponse(
        positions=[AreaOut.from_domain(a) for a in result.positions],
        iterations=result.iterations,
        remaining_conflicts=result.remaining_conflicts,
        conflict_free=result.conflict_free,
    )
