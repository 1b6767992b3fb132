"""
Coordinate conversion between percentage space and pixel space.

Percentage space (0..100, top-left origin) is the stored truth. Pixel
values are recomputed from it whenever the viewer changes page size or
zoom, and are never written back.
"""
from __future__ import annotations

from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar, Union

from core.errors import (
    LengthMismatchError,
    MissingPageDimensionsError,
    UnsupportedConversionError,
)
from core.limits import DEFAULT_LIMITS, CoordinateLimits
from models.position import (
    CoordinatePoint,
    CoordinateSize,
    CoordinateSystem,
    PageDimensions,
    PixelPoint,
    PixelPosition,
    PixelSize,
    SignaturePosition,
)

T = TypeVar("T")

PageDimensionsMap = Dict[int, PageDimensions]


def round_to_precision(value: float, precision: int) -> float:
    """
    Round half away from zero (2.345 -> 2.35, -2.345 -> -2.35).

    Goes through Decimal built from the float's shortest repr, so values
    like 1.005 round the way they read instead of the way they are stored.
    """
    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def _precision(precision: Optional[int], limits: CoordinateLimits) -> int:
    return limits.clamp_precision(precision)


# ---------- point / size ----------

def percentage_to_pixel(
    point: CoordinatePoint,
    page: PageDimensions,
    precision: Optional[int] = None,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> PixelPoint:
    p = _precision(precision, limits)
    return PixelPoint(
        x=round_to_precision(point.x / 100 * page.width, p),
        y=round_to_precision(point.y / 100 * page.height, p),
    )


def pixel_to_percentage(
    point: PixelPoint,
    page: PageDimensions,
    precision: Optional[int] = None,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> CoordinatePoint:
    p = _precision(precision, limits)
    return CoordinatePoint(
        x=round_to_precision(point.x / page.width * 100, p),
        y=round_to_precision(point.y / page.height * 100, p),
    )


def percentage_size_to_pixel(
    size: CoordinateSize,
    page: PageDimensions,
    precision: Optional[int] = None,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> PixelSize:
    p = _precision(precision, limits)
    return PixelSize(
        width=round_to_precision(size.width / 100 * page.width, p),
        height=round_to_precision(size.height / 100 * page.height, p),
    )


def pixel_size_to_percentage(
    size: PixelSize,
    page: PageDimensions,
    precision: Optional[int] = None,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> CoordinateSize:
    p = _precision(precision, limits)
    return CoordinateSize(
        width=round_to_precision(size.width / page.width * 100, p),
        height=round_to_precision(size.height / page.height * 100, p),
    )


# ---------- whole positions ----------

def signature_position_to_pixel(
    position: SignaturePosition,
    page: PageDimensions,
    precision: Optional[int] = None,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> PixelPosition:
    point = percentage_to_pixel(position.point, page, precision, limits)
    size = percentage_size_to_pixel(position.size, page, precision, limits)
    return PixelPosition(
        x=point.x,
        y=point.y,
        width=size.width,
        height=size.height,
        page_number=position.page_number,
    )


def pixel_position_to_signature(
    position: PixelPosition,
    recipient_id: str,
    page: PageDimensions,
    precision: Optional[int] = None,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> SignaturePosition:
    """Pixel space has no recipient, so the caller must name one."""
    point = pixel_to_percentage(position, page, precision, limits)
    size = pixel_size_to_percentage(position, page, precision, limits)
    return SignaturePosition(
        x=point.x,
        y=point.y,
        width=size.width,
        height=size.height,
        page_number=position.page_number,
        recipient_id=recipient_id,
    )


def create_page_dimensions_map(dimensions: Iterable[PageDimensions]) -> PageDimensionsMap:
    """Index page dimensions by page number (last one wins)."""
    return {dim.page_number: dim for dim in dimensions}


def _lookup_page(page_map: PageDimensionsMap, page_number: int) -> PageDimensions:
    page = page_map.get(page_number)
    if page is None:
        raise MissingPageDimensionsError(page_number)
    return page


def batch_signature_positions_to_pixel(
    positions: Sequence[SignaturePosition],
    page_map: PageDimensionsMap,
    precision: Optional[int] = None,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> List[PixelPosition]:
    """
    Raises:
        MissingPageDimensionsError: a position's page is not in `page_map`
    """
    return [
        signature_position_to_pixel(
            pos, _lookup_page(page_map, pos.page_number), precision, limits
        )
        for pos in positions
    ]


def batch_pixel_positions_to_signature(
    positions: Sequence[PixelPosition],
    recipient_ids: Sequence[str],
    page_map: PageDimensionsMap,
    precision: Optional[int] = None,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> List[SignaturePosition]:
    """
    Raises:
        LengthMismatchError: positions and recipient_ids differ in length
        MissingPageDimensionsError: a position's page is not in `page_map`
    """
    if len(positions) != len(recipient_ids):
        raise LengthMismatchError(
            f"Got {len(positions)} pixel positions but {len(recipient_ids)} recipient ids"
        )
    return [
        pixel_position_to_signature(
            pos, recipient_id, _lookup_page(page_map, pos.page_number), precision, limits
        )
        for pos, recipient_id in zip(positions, recipient_ids)
    ]


# ---------- generic rectangle helpers ----------

def convert_coordinate_system(
    position: T,
    from_system: Union[CoordinateSystem, str],
    to_system: Union[CoordinateSystem, str],
    page_dimensions: PageDimensions,
    precision: Optional[int] = None,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> T:
    """
    Convert any rectangle-shaped dataclass (x, y, width, height) between
    systems, keeping its other fields.

    Returns the same object when both systems are equal.

    Raises:
        UnsupportedConversionError: a system other than percentage/pixel
    """
    try:
        src = CoordinateSystem(from_system)
        dst = CoordinateSystem(to_system)
    except ValueError:
        raise UnsupportedConversionError(
            f"Unsupported coordinate conversion: {from_system} -> {to_system}"
        ) from None

    if src == dst:
        return position

    if src == CoordinateSystem.PERCENTAGE:
        point = percentage_to_pixel(position, page_dimensions, precision, limits)
        size = percentage_size_to_pixel(position, page_dimensions, precision, limits)
    else:
        point = pixel_to_percentage(position, page_dimensions, precision, limits)
        size = pixel_size_to_percentage(position, page_dimensions, precision, limits)

    return replace(position, x=point.x, y=point.y, width=size.width, height=size.height)


def scale_coordinates(
    position: T,
    scale_x: float,
    scale_y: float,
    precision: Optional[int] = None,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> T:
    """Scale a rectangle per axis, e.g. when a page is redrawn at another zoom."""
    p = _precision(precision, limits)
    return replace(
        position,
        x=round_to_precision(position.x * scale_x, p),
        y=round_to_precision(position.y * scale_y, p),
        width=round_to_precision(position.width * scale_x, p),
        height=round_to_precision(position.height * scale_y, p),
    )


def offset_coordinates(
    position: T,
    dx: float,
    dy: float,
    precision: Optional[int] = None,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> T:
    """Translate x/y only; size is untouched."""
    p = _precision(precision, limits)
    return replace(
        position,
        x=round_to_precision(position.x + dx, p),
        y=round_to_precision(position.y + dy, p),
    )


def constrain_coordinates(
    position: T,
    system: Union[CoordinateSystem, str],
    page_dimensions: Optional[PageDimensions] = None,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> T:
    """
    Clamp a rectangle onto the page.

    x/y are clamped into [0, max]; width/height are then shrunk (never
    below 0) so the rectangle ends at the page edge at the latest. The
    shrink is measured from the clamped corner.

    Raises:
        MissingPageDimensionsError: pixel system without page_dimensions
        UnsupportedConversionError: unknown coordinate system
    """
    try:
        system = CoordinateSystem(system)
    except ValueError:
        raise UnsupportedConversionError(f"Unknown coordinate system: {system}") from None

    if system == CoordinateSystem.PERCENTAGE:
        max_x = max_y = limits.max_percentage
    else:
        if page_dimensions is None:
            raise MissingPageDimensionsError(
                message="Constraining pixel coordinates requires page dimensions"
            )
        max_x, max_y = page_dimensions.width, page_dimensions.height

    x = max(0.0, min(max_x, position.x))
    y = max(0.0, min(max_y, position.y))
    return replace(
        position,
        x=x,
        y=y,
        width=max(0.0, min(max_x - x, position.width)),
        height=max(0.0, min(max_y - y, position.height)),
    )


def to_pdf_point_space(
    position: SignaturePosition,
    page: PageDimensions,
    precision: Optional[int] = None,
    limits: CoordinateLimits = DEFAULT_LIMITS,
) -> Dict[str, float]:
    """
    Project a stored position into PDF user space (origin bottom-left,
    y grows upwards), as needed when stamping onto the document.

    Returns x/y of the rectangle's lower-left corner plus width/height.
    """
    p = _precision(precision, limits)
    width = position.width / 100 * page.width
    height = position.height / 100 * page.height
    top = position.y / 100 * page.height
    return {
        "x": round_to_precision(position.x / 100 * page.width, p),
        "y": round_to_precision(page.height - top - height, p),
        "width": round_to_precision(width, p),
        "height": round_to_precision(height, p),
    }
