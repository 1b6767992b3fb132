"""
Overlap detection between placed fields, plus placement suggestions and
a greedy layout pass.

Nothing here validates input. A malformed rectangle (negative size, zero
area) simply has no overlap; rejecting it is the validator's job.
"""
from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import List, Optional, Sequence

from core.errors import PositionLimitError
from core.limits import DEFAULT_POLICY, ConflictPolicy
from models.position import (
    ConflictDetectionResult,
    ConflictInfo,
    ConflictSeverity,
    CoordinateSize,
    LayoutOptimizationResult,
    PositionArea,
)

logger = getLogger(__name__)


def calculate_overlap_area(a: PositionArea, b: PositionArea) -> float:
    """Intersection area of two axis-aligned rectangles. Touching edges -> 0."""
    left = max(a.x, b.x)
    right = min(a.x + a.width, b.x + b.width)
    top = max(a.y, b.y)
    bottom = min(a.y + a.height, b.y + b.height)

    if left >= right or top >= bottom:
        return 0.0
    return (right - left) * (bottom - top)


def classify_severity(
    overlap_percentage: float,
    policy: ConflictPolicy = DEFAULT_POLICY,
) -> ConflictSeverity:
    if overlap_percentage <= policy.low_severity_max:
        return ConflictSeverity.LOW
    if overlap_percentage <= policy.medium_severity_max:
        return ConflictSeverity.MEDIUM
    return ConflictSeverity.HIGH


def detect_position_conflict(
    current: PositionArea,
    existing: PositionArea,
    threshold: Optional[float] = None,
    policy: ConflictPolicy = DEFAULT_POLICY,
) -> Optional[ConflictInfo]:
    """
    Compare two rectangles.

    The overlap ratio is taken against the SMALLER of the two areas, so a
    small field fully covered by a big one always reads as 1.0.

    Returns None unless the ratio is strictly greater than `threshold`.
    """
    if threshold is None:
        threshold = policy.default_threshold

    overlap = calculate_overlap_area(current, existing)
    if overlap <= 0:
        return None

    min_area = min(current.area(), existing.area())
    if min_area <= 0:
        return None

    ratio = overlap / min_area
    if ratio <= threshold:
        return None

    return ConflictInfo(
        conflicting_position_id=existing.id,
        overlap_area=overlap,
        overlap_percentage=ratio,
        overlap_threshold=threshold,
        severity=classify_severity(ratio, policy),
        details=f"Overlap {ratio * 100:.1f}% (threshold {threshold * 100:.1f}%)",
    )


def _summary_message(conflicts: List[ConflictInfo]) -> str:
    if not conflicts:
        return "No position conflicts detected"
    for severity in (ConflictSeverity.HIGH, ConflictSeverity.MEDIUM, ConflictSeverity.LOW):
        count = sum(1 for c in conflicts if c.severity == severity)
        if count:
            return f"Detected {count} {severity.value}-severity conflict{'s' if count != 1 else ''}"
    return ""


def detect_batch_conflicts(
    new_position: PositionArea,
    existing: Sequence[PositionArea],
    threshold: Optional[float] = None,
    policy: ConflictPolicy = DEFAULT_POLICY,
) -> ConflictDetectionResult:
    """
    Check one candidate against already accepted positions.

    Entries sharing the candidate's id are skipped (editing a field must
    not conflict with its own previous placement). The message counts the
    conflicts of the worst severity present.
    """
    conflicts = []
    for other in existing:
        if new_position.id and new_position.id == other.id:
            continue
        conflict = detect_position_conflict(new_position, other, threshold, policy)
        if conflict:
            conflicts.append(conflict)

    return ConflictDetectionResult(
        has_conflict=bool(conflicts),
        conflicts=conflicts,
        message=_summary_message(conflicts),
    )


def _ensure_within_cap(count: int, policy: ConflictPolicy, operation: str) -> None:
    if count > policy.max_positions:
        logger.warning(f"{operation} rejected: {count} positions > {policy.max_positions}")
        raise PositionLimitError(count, policy.max_positions, operation)


def detect_internal_conflicts(
    positions: Sequence[PositionArea],
    threshold: Optional[float] = None,
    policy: ConflictPolicy = DEFAULT_POLICY,
) -> ConflictDetectionResult:
    """
    All-pairs scan inside one candidate batch. Pairs are reported with
    1-based indices.

    Raises:
        PositionLimitError: more than `policy.max_positions` positions
    """
    _ensure_within_cap(len(positions), policy, "internal conflict detection")

    conflicts = []
    for i in range(len(positions)):
        for j in range(i + 1, len(positions)):
            conflict = detect_position_conflict(positions[i], positions[j], threshold, policy)
            if conflict:
                conflict.pair = (i + 1, j + 1)
                conflict.details = f"Position {i + 1} conflicts with position {j + 1}: {conflict.details}"
                conflicts.append(conflict)

    return ConflictDetectionResult(
        has_conflict=bool(conflicts),
        conflicts=conflicts,
        message=(
            f"Detected {len(conflicts)} internal position conflicts"
            if conflicts
            else "No conflicts between positions"
        ),
    )


def _grid(limit: float, step: float) -> List[float]:
    """0, step, 2*step, ... up to and including `limit`."""
    if limit < 0:
        return []
    count = int(limit / step + 1e-9)
    return [round(i * step, 6) for i in range(count + 1)]


def _on_page(area: PositionArea, page_number: int) -> bool:
    return area.page_number is None or area.page_number == page_number


def get_suggested_positions(
    existing: Sequence[PositionArea],
    page_number: int,
    desired_size: Optional[CoordinateSize] = None,
    grid_step: Optional[float] = None,
    policy: ConflictPolicy = DEFAULT_POLICY,
) -> List[PositionArea]:
    """
    Offer free slots for a new field of `desired_size` on one page.

    Scans a grid row by row (top to bottom, left to right). A cell is
    offered when it has no conflict with `existing` at the stricter
    suggestion threshold. Stops after `policy.max_suggestions` hits or at
    the end of the page.

    Existing areas tagged with a different page are ignored.
    """
    if desired_size is None:
        desired_size = CoordinateSize(*policy.default_suggestion_size)
    if grid_step is None:
        grid_step = policy.default_grid_step
    if grid_step <= 0:
        return []

    same_page = [area for area in existing if _on_page(area, page_number)]
    suggestions: List[PositionArea] = []

    for y in _grid(100 - desired_size.height, grid_step):
        for x in _grid(100 - desired_size.width, grid_step):
            candidate = PositionArea(
                x=x,
                y=y,
                width=desired_size.width,
                height=desired_size.height,
                page_number=page_number,
            )
            result = detect_batch_conflicts(
                candidate, same_page, policy.suggestion_threshold, policy
            )
            if not result.has_conflict:
                suggestions.append(candidate)
                if len(suggestions) >= policy.max_suggestions:
                    return suggestions

    return suggestions


def optimize_position_layout(
    positions: Sequence[PositionArea],
    page_number: int,
    max_iterations: Optional[int] = None,
    policy: ConflictPolicy = DEFAULT_POLICY,
) -> LayoutOptimizationResult:
    """
    Greedy nudge pass to reduce overlaps. This is a heuristic, not a solver.

    Each iteration walks the positions in order; any position that still
    conflicts with the others moves right by `optimizer_step_x`. If that
    pushes it past the right edge it wraps to x=0 one row
    (`optimizer_step_y`) lower; if the wrap would leave the page the
    position stays put this round.

    Positions tagged with another page are passed through untouched.
    The result reports how many internal conflicts remain; callers should
    fall back to get_suggested_positions or manual placement when it is
    not zero.

    Raises:
        PositionLimitError: more than `policy.max_positions` positions
    """
    if max_iterations is None:
        max_iterations = policy.max_iterations
    _ensure_within_cap(len(positions), policy, "layout optimization")

    layout = list(positions)
    movable = [i for i, area in enumerate(layout) if _on_page(area, page_number)]

    def _page_conflicts() -> ConflictDetectionResult:
        return detect_internal_conflicts([layout[i] for i in movable], policy=policy)

    iterations = 0
    while iterations < max_iterations:
        if not _page_conflicts().has_conflict:
            break

        for i in movable:
            area = layout[i]
            others = [layout[j] for j in movable if j != i]
            if not detect_batch_conflicts(area, others, policy=policy).has_conflict:
                continue

            new_x, new_y = area.x + policy.optimizer_step_x, area.y
            if new_x + area.width > 100:
                new_x, new_y = 0.0, area.y + policy.optimizer_step_y
                if new_y + area.height > 100:
                    continue
            layout[i] = replace(area, x=new_x, y=new_y)

        iterations += 1
        logger.debug(f"Layout pass {iterations} on page {page_number}")

    remaining = len(_page_conflicts().conflicts)
    if remaining:
        logger.warning(
            f"Layout optimization on page {page_number} left {remaining} conflicts "
            f"after {iterations} iterations"
        )

    return LayoutOptimizationResult(
        positions=layout,
        iterations=iterations,
        remaining_conflicts=remaining,
    )
