# services/api/models/position.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
  """Return the first present key, so camelCase and snake_case payloads both work."""
  for key in keys:
    if key in data and data[key] is not None:
      return data[key]
  return None


def _require_float(data: Mapping[str, Any], *keys: str) -> float:
  val = _pick(data, *keys)
  if val is None or (isinstance(val, str) and not val.strip()):
    raise ValueError(f"Missing required field: {keys[0]}")
  return float(val)


# ---------- enums ----------

class CoordinateErrorType(str, Enum):
  MISSING_FIELD = "MISSING_FIELD"
  INVALID_X = "INVALID_X"
  INVALID_Y = "INVALID_Y"
  INVALID_WIDTH = "INVALID_WIDTH"
  INVALID_HEIGHT = "INVALID_HEIGHT"
  INVALID_PAGE_NUMBER = "INVALID_PAGE_NUMBER"
  OUT_OF_BOUNDS = "OUT_OF_BOUNDS"
  PRECISION_ERROR = "PRECISION_ERROR"
  OVERLAP = "OVERLAP"


COORDINATE_ERROR_MESSAGES: Dict[CoordinateErrorType, str] = {
  CoordinateErrorType.MISSING_FIELD: "Missing required coordinate field",
  CoordinateErrorType.INVALID_X: "X coordinate must be within 0-100",
  CoordinateErrorType.INVALID_Y: "Y coordinate must be within 0-100",
  CoordinateErrorType.INVALID_WIDTH: "Width must be within the allowed range",
  CoordinateErrorType.INVALID_HEIGHT: "Height must be within the allowed range",
  CoordinateErrorType.INVALID_PAGE_NUMBER: "Page number must be a whole number within range",
  CoordinateErrorType.OUT_OF_BOUNDS: "Field extends beyond the page boundary",
  CoordinateErrorType.PRECISION_ERROR: "Coordinate has too many decimal places",
  CoordinateErrorType.OVERLAP: "Fields overlap on the same page",
}


class ConflictSeverity(str, Enum):
  LOW = "low"
  MEDIUM = "medium"
  HIGH = "high"


class CoordinateSystem(str, Enum):
  PERCENTAGE = "percentage"
  PIXEL = "pixel"


# ---------- geometry values ----------

@dataclass(frozen=True)
class CoordinatePoint:
  """Top-left corner in percentage space (0-100)."""
  x: float
  y: float


@dataclass(frozen=True)
class CoordinateSize:
  width: float
  height: float


@dataclass(frozen=True)
class SignaturePosition:
  """
  Canonical placed-field record.

  All values are PERCENTAGES of the page (0..100) with origin at the
  top-left corner. This is what gets handed to persistence; pixel values
  are always derived from it.
  """

  x: float
  y: float
  width: float
  height: float
  page_number: int
  recipient_id: str

  @property
  def point(self) -> CoordinatePoint:
    return CoordinatePoint(self.x, self.y)

  @property
  def size(self) -> CoordinateSize:
    return CoordinateSize(self.width, self.height)

  def area(self) -> float:
    return self.width * self.height

  # --------------------
  # Conversions – API payloads
  # --------------------
  @classmethod
  def from_api(cls, data: Mapping[str, Any]) -> "SignaturePosition":
    """
    Build from an incoming payload. Accepts `pageNumber`/`recipientId`
    as sent by the placement UI, or their snake_case forms.

    Raises ValueError if a field is missing. Range checks are the
    validator's job.
    """
    page = _pick(data, "page_number", "pageNumber")
    recipient = _pick(data, "recipient_id", "recipientId")
    if page is None:
      raise ValueError("Missing required field: page_number")
    if recipient is None:
      raise ValueError("Missing required field: recipient_id")
    return cls(
      x=_require_float(data, "x"),
      y=_require_float(data, "y"),
      width=_require_float(data, "width"),
      height=_require_float(data, "height"),
      page_number=int(page),
      recipient_id=str(recipient).strip(),
    )

  def to_api(self) -> Dict[str, Any]:
    return {
      "x": self.x,
      "y": self.y,
      "width": self.width,
      "height": self.height,
      "pageNumber": self.page_number,
      "recipientId": self.recipient_id,
    }

  # --------------------
  # Conversions – storage rows (percent columns)
  # --------------------
  @classmethod
  def from_storage(cls, row: Mapping[str, Any]) -> "SignaturePosition":
    """
    Create from a stored position row. Column names follow the
    positions table: x_percent, y_percent, width_percent, height_percent.
    """
    return cls(
      x=_require_float(row, "x_percent"),
      y=_require_float(row, "y_percent"),
      width=_require_float(row, "width_percent"),
      height=_require_float(row, "height_percent"),
      page_number=int(row.get("page_number") or 0),
      recipient_id=(row.get("recipient_id") or "").strip(),
    )

  def to_storage(self) -> Dict[str, Any]:
    return {
      "x_percent": self.x,
      "y_percent": self.y,
      "width_percent": self.width,
      "height_percent": self.height,
      "page_number": self.page_number,
      "recipient_id": self.recipient_id,
    }


@dataclass(frozen=True)
class PixelPoint:
  x: float
  y: float


@dataclass(frozen=True)
class PixelSize:
  width: float
  height: float


@dataclass(frozen=True)
class PixelPosition:
  """Display projection of a SignaturePosition. Never persisted."""
  x: float
  y: float
  width: float
  height: float
  page_number: int

  def to_api(self) -> Dict[str, Any]:
    return {
      "x": self.x,
      "y": self.y,
      "width": self.width,
      "height": self.height,
      "pageNumber": self.page_number,
    }


@dataclass(frozen=True)
class PageDimensions:
  """Rendered size of one page in pixels, as supplied by the viewer."""
  width: float
  height: float
  page_number: int

  def is_valid(self) -> bool:
    return (
      isinstance(self.page_number, int)
      and self.page_number > 0
      and self.width > 0
      and self.height > 0
    )


@dataclass(frozen=True)
class PositionArea:
  """
  Plain rectangle used by the conflict detector, so geometry code does
  not depend on the persisted record shape.
  """
  x: float
  y: float
  width: float
  height: float
  id: Optional[str] = None
  recipient_id: Optional[str] = None
  page_number: Optional[int] = None

  def area(self) -> float:
    return self.width * self.height

  @classmethod
  def from_position(
    cls,
    position: SignaturePosition,
    position_id: Optional[str] = None,
  ) -> "PositionArea":
    return cls(
      x=position.x,
      y=position.y,
      width=position.width,
      height=position.height,
      id=position_id,
      recipient_id=position.recipient_id,
      page_number=position.page_number,
    )


# ---------- validation results ----------

@dataclass
class CoordinateError:
  kind: CoordinateErrorType
  message: str
  field: Optional[str] = None
  index: Optional[int] = None  # 1-based, set by batch validation

  def __str__(self) -> str:
    return self.message


@dataclass
class CoordinateValidationResult:
  is_valid: bool
  errors: List[CoordinateError] = field(default_factory=list)
  warnings: List[str] = field(default_factory=list)

  @classmethod
  def from_errors(
    cls,
    errors: List[CoordinateError],
    warnings: Optional[List[str]] = None,
  ) -> "CoordinateValidationResult":
    return cls(is_valid=not errors, errors=list(errors), warnings=list(warnings or []))

  @property
  def error_kinds(self) -> List[CoordinateErrorType]:
    return [e.kind for e in self.errors]

  def to_api(self) -> Dict[str, Any]:
    return {
      "isValid": self.is_valid,
      "errors": [
        {"kind": e.kind.value, "message": e.message, "field": e.field, "index": e.index}
        for e in self.errors
      ],
      "warnings": list(self.warnings),
    }


# ---------- conflict results ----------

@dataclass
class ConflictInfo:
  overlap_area: float
  overlap_percentage: float
  overlap_threshold: float
  severity: ConflictSeverity
  details: str
  conflicting_position_id: Optional[str] = None
  pair: Optional[Tuple[int, int]] = None  # 1-based, internal conflicts only

  def to_api(self) -> Dict[str, Any]:
    return {
      "overlapArea": self.overlap_area,
      "overlapPercentage": self.overlap_percentage,
      "overlapThreshold": self.overlap_threshold,
      "severity": self.severity.value,
      "details": self.details,
      "conflictingPositionId": self.conflicting_position_id,
      "pair": list(self.pair) if self.pair else None,
    }


@dataclass
class ConflictDetectionResult:
  has_conflict: bool
  conflicts: List[ConflictInfo] = field(default_factory=list)
  message: str = ""

  def to_api(self) -> Dict[str, Any]:
    return {
      "hasConflict": self.has_conflict,
      "conflicts": [c.to_api() for c in self.conflicts],
      "message": self.message,
    }


@dataclass
class LayoutOptimizationResult:
  """
  Outcome of the greedy layout pass. `remaining_conflicts` is the
  internal conflict count after the last iteration; zero means the
  layout is clean.
  """
  positions: List[PositionArea]
  iterations: int
  remaining_conflicts: int

  @property
  def conflict_free(self) -> bool:
    return self.remaining_conflicts == 0
