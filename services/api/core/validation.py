"""
Validation utilities for field placement.
Checks placement invariants and reports every problem as data.

None of these functions raise for bad coordinate values. The only raise
is PositionLimitError when a batch is larger than the configured cap.
"""
from __future__ import annotations

import math
from collections import defaultdict
from logging import getLogger
from typing import Any, Dict, List, Mapping, Sequence, Set, Tuple

from core.errors import PositionLimitError
from core.limits import DEFAULT_LIMITS, EDGE_EPSILON, CoordinateLimits
from models.position import (
    COORDINATE_ERROR_MESSAGES,
    CoordinateError,
    CoordinateErrorType as ErrType,
    CoordinateValidationResult,
)

logger = getLogger(__name__)


def _get(source: Any, name: str) -> Any:
    """Read a field from a payload dict or a dataclass/object."""
    if isinstance(source, Mapping):
        return source.get(name)
    return getattr(source, name, None)


def _get_page_number(source: Any) -> Any:
    value = _get(source, "page_number")
    if value is None:
        value = _get(source, "pageNumber")
    return value


def _get_recipient_id(source: Any) -> Any:
    value = _get(source, "recipient_id")
    if value is None:
        value = _get(source, "recipientId")
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _error(kind: ErrType, detail: str = "", field: str | None = None) -> CoordinateError:
    message = COORDINATE_ERROR_MESSAGES[kind]
    if detail:
        message = f"{message}: {detail}"
    return CoordinateError(kind=kind, message=message, field=field)


def exceeds_precision(value: float, max_precision: int) -> bool:
    """
    True if `value` carries more than `max_precision` decimals.

    Uses the scaled value instead of its string form: 12.3456 * 10**4 is
    integral (up to float noise), 12.34567 * 10**4 is not.
    """
    if not math.isfinite(value):
        return False
    scaled = value * (10 ** max_precision)
    return abs(scaled - round(scaled)) > 1e-6


def _check_missing(source: Any, names: Sequence[str]) -> List[CoordinateError]:
    return [
        _error(ErrType.MISSING_FIELD, name, field=name)
        for name in names
        if not _is_number(_get(source, name))
    ]


def _check_precision(
    source: Any,
    names: Sequence[str],
    limits: CoordinateLimits,
) -> List[CoordinateError]:
    errors = []
    for name in names:
        if exceeds_precision(float(_get(source, name)), limits.max_precision):
            errors.append(
                _error(
                    ErrType.PRECISION_ERROR,
                    f"{name} has more than {limits.max_precision} decimal places",
                    field=name,
                )
            )
    return errors


def validate_coordinate_point(
    point: Any,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> CoordinateValidationResult:
    """
    Validate the (x, y) corner of a field.

    Rules:
    - x and y must be present numbers
    - each must be in [0, 100]
    - each must have at most `max_precision` decimals
    """
    errors = _check_missing(point, ("x", "y"))
    if errors:
        return CoordinateValidationResult.from_errors(errors)

    lo, hi = limits.min_percentage, limits.max_percentage
    x, y = float(_get(point, "x")), float(_get(point, "y"))

    if not (lo <= x <= hi):
        errors.append(_error(ErrType.INVALID_X, f"got {x}", field="x"))
    if not (lo <= y <= hi):
        errors.append(_error(ErrType.INVALID_Y, f"got {y}", field="y"))

    errors.extend(_check_precision(point, ("x", "y"), limits))
    return CoordinateValidationResult.from_errors(errors)


def validate_coordinate_size(
    size: Any,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> CoordinateValidationResult:
    """
    Validate width/height against the configured bands.
    """
    errors = _check_missing(size, ("width", "height"))
    if errors:
        return CoordinateValidationResult.from_errors(errors)

    width, height = float(_get(size, "width")), float(_get(size, "height"))

    if not (limits.min_width <= width <= limits.max_width):
        errors.append(
            _error(
                ErrType.INVALID_WIDTH,
                f"got {width}, allowed {limits.min_width}-{limits.max_width}%",
                field="width",
            )
        )
    if not (limits.min_height <= height <= limits.max_height):
        errors.append(
            _error(
                ErrType.INVALID_HEIGHT,
                f"got {height}, allowed {limits.min_height}-{limits.max_height}%",
                field="height",
            )
        )

    errors.extend(_check_precision(size, ("width", "height"), limits))
    return CoordinateValidationResult.from_errors(errors)


def validate_page_number(
    page_number: Any,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> CoordinateValidationResult:
    """
    Page numbers are 1-based whole numbers. 3.0 is accepted as page 3,
    3.5 is not.
    """
    if not _is_number(page_number):
        return CoordinateValidationResult.from_errors(
            [_error(ErrType.MISSING_FIELD, "page_number", field="page_number")]
        )

    errors = []
    if isinstance(page_number, float) and not page_number.is_integer():
        errors.append(
            _error(ErrType.INVALID_PAGE_NUMBER, f"{page_number} is not a whole number", field="page_number")
        )
    elif not (limits.min_page_number <= page_number <= limits.max_page_number):
        errors.append(
            _error(
                ErrType.INVALID_PAGE_NUMBER,
                f"got {page_number}, allowed {limits.min_page_number}-{limits.max_page_number}",
                field="page_number",
            )
        )
    return CoordinateValidationResult.from_errors(errors)


def validate_signature_bounds(
    position: Any,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> CoordinateValidationResult:
    """
    Make sure the field does not cross the right or bottom page edge.

    A field whose right/bottom edge sits within `edge_warning_margin` of
    the page edge is still valid, but gets a warning. Missing geometry is
    reported as MISSING_FIELD.
    """
    errors = _check_missing(position, ("x", "y", "width", "height"))
    if errors:
        return CoordinateValidationResult.from_errors(errors)

    warnings: List[str] = []
    page_max = limits.max_percentage

    right = float(_get(position, "x")) + float(_get(position, "width"))
    bottom = float(_get(position, "y")) + float(_get(position, "height"))

    if right > page_max + EDGE_EPSILON:
        errors.append(_error(ErrType.OUT_OF_BOUNDS, f"right edge at {right:g}%", field="x"))
    if bottom > page_max + EDGE_EPSILON:
        errors.append(_error(ErrType.OUT_OF_BOUNDS, f"bottom edge at {bottom:g}%", field="y"))

    near = page_max - limits.edge_warning_margin
    if near < right <= page_max + EDGE_EPSILON:
        warnings.append("Field is very close to the right page edge and may be clipped")
    if near < bottom <= page_max + EDGE_EPSILON:
        warnings.append("Field is very close to the bottom page edge and may be clipped")

    return CoordinateValidationResult.from_errors(errors, warnings)


def validate_signature_position(
    position: Any,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> CoordinateValidationResult:
    """
    Validate a complete candidate position.

    Bounds are only checked once point, size, page and recipient all pass;
    an edge computed from a bad width means nothing.
    """
    errors: List[CoordinateError] = []
    warnings: List[str] = []

    errors.extend(validate_coordinate_point(position, limits).errors)
    errors.extend(validate_coordinate_size(position, limits).errors)
    errors.extend(validate_page_number(_get_page_number(position), limits).errors)

    recipient_id = _get_recipient_id(position)
    if not isinstance(recipient_id, str) or not recipient_id.strip():
        errors.append(_error(ErrType.MISSING_FIELD, "recipient_id", field="recipient_id"))

    if not errors:
        bounds = validate_signature_bounds(position, limits)
        errors.extend(bounds.errors)
        warnings.extend(bounds.warnings)

    return CoordinateValidationResult.from_errors(errors, warnings)


def rects_intersect(a: Any, b: Any) -> bool:
    """Strict interior intersection; shared edges do not count."""
    ax, ay = float(_get(a, "x")), float(_get(a, "y"))
    bx, by = float(_get(b, "x")), float(_get(b, "y"))
    return not (
        ax + float(_get(a, "width")) <= bx
        or bx + float(_get(b, "width")) <= ax
        or ay + float(_get(a, "height")) <= by
        or by + float(_get(b, "height")) <= ay
    )


def _group_by_page(
    positions: Sequence[Any],
    include: Set[int],
) -> Dict[Any, List[Tuple[int, Any]]]:
    groups: Dict[Any, List[Tuple[int, Any]]] = defaultdict(list)
    for idx, position in enumerate(positions, start=1):
        if idx not in include:
            continue
        groups[_get_page_number(position)].append((idx, position))
    return groups


def validate_multiple_signature_positions(
    positions: Sequence[Any],
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> CoordinateValidationResult:
    """
    Gate a whole batch of positions (e.g. a template import).

    Each position is validated on its own; its errors and warnings are
    prefixed with its 1-based index. Then, per page, any two positions
    whose rectangles intersect at all produce an OVERLAP error. This is
    stricter than the threshold-based conflict detector on purpose.

    Raises:
        PositionLimitError: more than `limits.max_batch_size` positions
    """
    if len(positions) > limits.max_batch_size:
        logger.warning(
            f"Batch validation rejected: {len(positions)} positions > {limits.max_batch_size}"
        )
        raise PositionLimitError(len(positions), limits.max_batch_size, "batch validation")

    errors: List[CoordinateError] = []
    warnings: List[str] = []
    well_formed = set()

    for idx, position in enumerate(positions, start=1):
        result = validate_signature_position(position, limits)
        for err in result.errors:
            errors.append(
                CoordinateError(
                    kind=err.kind,
                    message=f"Position {idx}: {err.message}",
                    field=err.field,
                    index=idx,
                )
            )
        warnings.extend(f"Position {idx}: {w}" for w in result.warnings)
        # Intersections need numeric geometry and page; bad fields are already reported
        if not _check_missing(position, ("x", "y", "width", "height")) and _is_number(
            _get_page_number(position)
        ):
            well_formed.add(idx)

    for page_number, entries in _group_by_page(positions, well_formed).items():
        for a in range(len(entries)):
            for b in range(a + 1, len(entries)):
                idx_a, pos_a = entries[a]
                idx_b, pos_b = entries[b]
                if rects_intersect(pos_a, pos_b):
                    errors.append(
                        CoordinateError(
                            kind=ErrType.OVERLAP,
                            message=(
                                f"Page {page_number}: positions {idx_a} and {idx_b} overlap"
                            ),
                            index=idx_a,
                        )
                    )

    return CoordinateValidationResult.from_errors(errors, warnings)
