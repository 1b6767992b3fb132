"""
Exceptions raised for caller bugs (contract violations).

Bad coordinate *values* are never raised; they come back as
CoordinateValidationResult. Everything here means the caller passed an
unusable argument and the request should fail.
"""
from __future__ import annotations


class CoordinateContractError(ValueError):
    """Base class for geometry engine contract violations."""


class MissingPageDimensionsError(CoordinateContractError):
    """A position references a page with no supplied PageDimensions."""

    def __init__(self, page_number: int | None = None, message: str | None = None):
        self.page_number = page_number
        if message is None:
            message = f"No page dimensions supplied for page {page_number}"
        super().__init__(message)


class LengthMismatchError(CoordinateContractError):
    """Parallel arrays passed to a batch call differ in length."""


class UnsupportedConversionError(CoordinateContractError):
    """Requested coordinate system conversion does not exist."""


class PositionLimitError(CoordinateContractError):
    """Too many positions for a quadratic operation."""

    def __init__(self, count: int, limit: int, operation: str):
        self.count = count
        self.limit = limit
        self.operation = operation
        super().__init__(
            f"{operation}: {count} positions exceeds the configured limit of {limit}"
        )
