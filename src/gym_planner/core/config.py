"""
Configuration constants for the gym planner.

All adjustable parameters are centralized here for easy tuning.
"""

from typing import Final

# =============================================================================
# STORAGE KEYS
# =============================================================================

PROGRAMS_KEY: Final[str] = "gym_programs_v2"
RUNS_KEY: Final[str] = "gym_runs_v2"

# Keys written by the first storage schema; copied forward once on first access
LEGACY_PROGRAMS_KEY: Final[str] = "gym_programs_v1"
LEGACY_RUNS_KEY: Final[str] = "gym_runs_v1"

# =============================================================================
# SESSION DEFAULTS
# =============================================================================

DEFAULT_REPS: Final[int] = 1  # Fallback set count for records with no usable reps
DEFAULT_WEIGHT: Final[float] = 0.0  # Seed for missing weights and rejected input

# =============================================================================
# ANALYTICS
# =============================================================================

WEEK_WINDOW_HOURS: Final[int] = 7 * 24  # Trailing window for "this week"
STREAK_MAX_DAYS: Final[int] = 365  # Hard cap on the backward streak walk
AVERAGE_WEIGHT_DECIMALS: Final[int] = 1
RECENT_WORKOUTS_LIMIT: Final[int] = 5
TOP_EXERCISES_MIN_SESSIONS: Final[int] = 2
TOP_EXERCISES_LIMIT: Final[int] = 4

MS_PER_MINUTE: Final[int] = 60 * 1000

# =============================================================================
# DISPLAY
# =============================================================================

WEIGHT_UNIT: Final[str] = "kg"  # Presentation label only; weights are unit-agnostic
PLOT_WIDTH: Final[int] = 60
PLOT_HEIGHT: Final[int] = 16
PROGRESS_BAR_WIDTH: Final[int] = 30
