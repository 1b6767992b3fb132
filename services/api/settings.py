# services/api/settings.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field
from typing import List
from pathlib import Path

from core.limits import ConflictPolicy, CoordinateLimits


class Settings(BaseSettings):
    # CORS settings
    allowed_origins: str = "http://localhost:3000,http://localhost:3001,http://localhost:8000"

    log_level: str = "INFO"

    # ---- Coordinate limits (percentage space, 0-100) ----
    # Example in .env:
    # PLACEMENT_MAX_WIDTH=60
    min_width: float = Field(default=1.0, alias="PLACEMENT_MIN_WIDTH")
    max_width: float = Field(default=50.0, alias="PLACEMENT_MAX_WIDTH")
    min_height: float = Field(default=0.5, alias="PLACEMENT_MIN_HEIGHT")
    max_height: float = Field(default=30.0, alias="PLACEMENT_MAX_HEIGHT")
    max_page_number: int = Field(default=1000, alias="PLACEMENT_MAX_PAGE_NUMBER")
    default_precision: int = Field(default=2, alias="PLACEMENT_DEFAULT_PRECISION")
    max_precision: int = Field(default=4, alias="PLACEMENT_MAX_PRECISION")
    edge_warning_margin: float = Field(default=5.0, alias="PLACEMENT_EDGE_WARNING_MARGIN")

    # ---- Conflict policy ----
    overlap_threshold: float = Field(default=0.20, alias="PLACEMENT_OVERLAP_THRESHOLD")
    low_severity_max: float = Field(default=0.35, alias="PLACEMENT_LOW_SEVERITY_MAX")
    medium_severity_max: float = Field(default=0.50, alias="PLACEMENT_MEDIUM_SEVERITY_MAX")
    suggestion_threshold: float = Field(default=0.10, alias="PLACEMENT_SUGGESTION_THRESHOLD")
    max_suggestions: int = Field(default=10, alias="PLACEMENT_MAX_SUGGESTIONS")
    optimizer_max_iterations: int = Field(default=10, alias="PLACEMENT_OPTIMIZER_MAX_ITERATIONS")
    optimizer_step_x: float = Field(default=5.0, alias="PLACEMENT_OPTIMIZER_STEP_X")
    optimizer_step_y: float = Field(default=10.0, alias="PLACEMENT_OPTIMIZER_STEP_Y")
    suggestion_grid_step: float = Field(default=5.0, alias="PLACEMENT_SUGGESTION_GRID_STEP")
    suggestion_width: float = Field(default=15.0, alias="PLACEMENT_SUGGESTION_WIDTH")
    suggestion_height: float = Field(default=5.0, alias="PLACEMENT_SUGGESTION_HEIGHT")

    # Cap on positions per request for the O(n^2) operations
    # (batch validation, internal conflicts, layout optimization).
    max_positions: int = Field(
        default=500,
        alias="PLACEMENT_MAX_POSITIONS",
        description="Max positions accepted by batch endpoints",
    )

    model_config = ConfigDict(
        # Always load .env from the same folder as this settings.py
        env_file=str(Path(__file__).resolve().parent / ".env"),
        extra="ignore",
        populate_by_name=True,
    )

    def get_origins_list(self) -> List[str]:
        """Parse comma-separated origins into a list."""
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    def coordinate_limits(self) -> CoordinateLimits:
        return CoordinateLimits(
            min_width=self.min_width,
            max_width=self.max_width,
            min_height=self.min_height,
            max_height=self.max_height,
            max_page_number=self.max_page_number,
            default_precision=self.default_precision,
            max_precision=self.max_precision,
            edge_warning_margin=self.edge_warning_margin,
            max_batch_size=self.max_positions,
        )

    def conflict_policy(self) -> ConflictPolicy:
        return ConflictPolicy(
            default_threshold=self.overlap_threshold,
            low_severity_max=self.low_severity_max,
            medium_severity_max=self.medium_severity_max,
            suggestion_threshold=self.suggestion_threshold,
            max_suggestions=self.max_suggestions,
            default_grid_step=self.suggestion_grid_step,
            default_suggestion_size=(self.suggestion_width, self.suggestion_height),
            optimizer_step_x=self.optimizer_step_x,
            optimizer_step_y=self.optimizer_step_y,
            max_iterations=self.optimizer_max_iterations,
            max_positions=self.max_positions,
        )


_settings_instance = None

def get_settings() -> Settings:
    """Singleton pattern for settings."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
