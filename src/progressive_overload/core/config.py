"""
Configuration constants for the progressive-overload engine.

All adjustable parameters are centralized here for easy tuning.  The
module-level constants are the defaults; ``ProgressionSettings`` bundles
them so a YAML override (see engine/config_loader.py) can replace them
without touching the engine code.
"""

from dataclasses import dataclass
from typing import Final

# =============================================================================
# DELOAD WEEK
# =============================================================================

DELOAD_WEIGHT_FACTOR: Final[float] = 0.85  # Deload weight as fraction of working weight
DELOAD_VOLUME_FACTOR: Final[float] = 0.5  # Deload sets as fraction of base sets (rounded up)
DELOAD_MIN_SETS: Final[int] = 1  # Never prescribe zero sets

# =============================================================================
# WEIGHT ROUNDING
# =============================================================================

WEIGHT_ROUNDING_INCREMENT: Final[float] = 2.5  # Smallest plate pair step (lbs)

# =============================================================================
# REGRESSION
# =============================================================================

CONSECUTIVE_FAILURE_THRESHOLD: Final[int] = 2  # Failed weeks at one weight before dropping load

# =============================================================================
# PLAN TEMPLATE DEFAULTS
# =============================================================================

DEFAULT_PLAN_WEEKS: Final[int] = 6  # Progression weeks; the deload week comes after
DEFAULT_WEIGHT_INCREMENT: Final[float] = 5.0
DEFAULT_MIN_REPS: Final[int] = 8
DEFAULT_MAX_REPS: Final[int] = 12

MIN_PLAN_WEEKS: Final[int] = 1
MAX_PLAN_WEEKS: Final[int] = 52


@dataclass(frozen=True)
class ProgressionSettings:
    """Tunable engine parameters, defaulting to the constants above."""

    deload_weight_factor: float = DELOAD_WEIGHT_FACTOR
    deload_volume_factor: float = DELOAD_VOLUME_FACTOR
    weight_rounding_increment: float = WEIGHT_ROUNDING_INCREMENT
    consecutive_failure_threshold: int = CONSECUTIVE_FAILURE_THRESHOLD
    default_plan_weeks: int = DEFAULT_PLAN_WEEKS

    def __post_init__(self) -> None:
        """Validate settings."""
        if not 0 < self.deload_weight_factor <= 1:
            raise ValueError("deload_weight_factor must be in (0, 1]")
        if not 0 < self.deload_volume_factor <= 1:
            raise ValueError("deload_volume_factor must be in (0, 1]")
        if self.weight_rounding_increment <= 0:
            raise ValueError("weight_rounding_increment must be positive")
        if self.consecutive_failure_threshold < 1:
            raise ValueError("consecutive_failure_threshold must be at least 1")
        if not MIN_PLAN_WEEKS <= self.default_plan_weeks <= MAX_PLAN_WEEKS:
            raise ValueError(
                f"default_plan_weeks must be between {MIN_PLAN_WEEKS} and {MAX_PLAN_WEEKS}"
            )


DEFAULT_SETTINGS: Final[ProgressionSettings] = ProgressionSettings()
