"""Configuration settings for Deoverlap."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from deoverlap.domain.contour import WindingDirection


class FillRule(str, Enum):
    """Predicate deciding whether a winding number is filled."""

    NONZERO = "nonzero"
    EVEN_ODD = "even_odd"

    def is_filled(self, winding: int) -> bool:
        """Apply the rule to a winding number."""
        if self is FillRule.EVEN_ODD:
            return winding % 2 == 1
        return winding != 0


class OverlapMode(str, Enum):
    """What to do with the overlapping regions."""

    REMOVE = "remove"
    INTERSECT = "intersect"
    EXCLUDE = "exclude"
    FIND_INTERSECTIONS = "find_intersections"


class OverlapScope(str, Enum):
    """Which contours take part in the operation."""

    ALL = "all"
    SELECTED = "selected"


class SweepAxis(str, Enum):
    """Axis along which pieces are made monotonic."""

    X = "x"
    Y = "y"


class GeometryConfig(BaseModel):
    """Numeric tolerances used throughout the pipeline.

    Position tolerances are specified at a reference UPM of 1000 and can be
    scaled for fonts with a different UPM with for_upm().
    """

    reference_upm: int = Field(
        default=1000,
        description="Reference UPM for position tolerances",
    )
    position_tolerance: float = Field(
        default=1e-4,
        gt=0.0,
        le=1.0,
        description="Points closer than this are the same point (font units)",
    )
    angle_tolerance: float = Field(
        default=1e-3,
        gt=0.0,
        le=0.1,
        description="Sine of the angle below which two tangents are parallel",
    )
    discriminant_epsilon: float = Field(
        default=1e-9,
        ge=0.0,
        le=1e-3,
        description="Relative discriminant below which a quadratic has a double root",
    )
    parameter_epsilon: float = Field(
        default=1e-9,
        gt=0.0,
        le=1e-3,
        description="Curve parameters this close to 0 or 1 count as endpoints",
    )
    max_subdivision_depth: int = Field(
        default=40,
        ge=8,
        le=64,
        description="Recursion cap for curve/curve intersection",
    )
    max_newton_iterations: int = Field(
        default=8,
        ge=0,
        le=32,
        description="Newton refinement steps for intersection hits",
    )
    max_ray_retries: int = Field(
        default=8,
        ge=1,
        le=32,
        description="Perturbations tried before switching to the secondary axis",
    )

    def scale_tolerance(self, base_value: float, upm: int) -> float:
        """Scale a tolerance value for the given UPM.

        Args:
            base_value: The tolerance value at reference UPM
            upm: The actual UPM of the font

        Returns:
            Scaled tolerance value
        """
        return base_value * (upm / self.reference_upm)

    def for_upm(self, upm: int) -> "GeometryConfig":
        """Return a copy with the position tolerance scaled for the given UPM."""
        return self.model_copy(
            update={"position_tolerance": self.scale_tolerance(self.position_tolerance, upm)}
        )


class OverlapConfig(BaseModel):
    """Configuration for the overlap operation."""

    fill_rule: FillRule = Field(
        default=FillRule.NONZERO,
        description="Fill rule used to decide which regions are inside",
    )
    mode: OverlapMode = Field(
        default=OverlapMode.REMOVE,
        description="Operation to perform on overlapping regions",
    )
    scope: OverlapScope = Field(
        default=OverlapScope.ALL,
        description="Operate on all contours or only on selected ones",
    )
    outer_direction: WindingDirection = Field(
        default=WindingDirection.CLOCKWISE,
        description="Direction of outer contours in the output (holes go the other way)",
    )
    sweep_axis: SweepAxis = Field(
        default=SweepAxis.Y,
        description="Axis in which pieces are monotonic",
    )
    clean_backtracks: bool = Field(
        default=True,
        description="Remove zero-area retraces from the output contours",
    )
    rejoin_segments: bool = Field(
        default=True,
        description="Merge split pieces of one source segment back together",
    )


class ProcessingConfig(BaseModel):
    """Configuration for batch processing."""

    max_workers: int | None = Field(
        default=None,
        description="Max worker processes (None = auto)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file (none written if unset)",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    file_log_level: str = Field(
        default="DEBUG",
        description="File log level (more verbose)",
    )


class DeoverlapSettings(BaseModel):
    """Main application settings."""

    geometry: GeometryConfig = Field(default_factory=GeometryConfig)
    overlap: OverlapConfig = Field(default_factory=OverlapConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_settings() -> DeoverlapSettings:
    """Get default application settings."""
    return DeoverlapSettings()
