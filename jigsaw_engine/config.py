from functools import lru_cache

from pydantic_settings import BaseSettings

from .models import Strategy


class EngineSettings(BaseSettings):
    """Tunable constants of the tessellation and assembly engine.

    Every value can be overridden from the environment with a ``PUZZLE_``
    prefix, e.g. ``PUZZLE_SNAP_DISTANCE=30`` for an easier difficulty.
    """

    # Snap/merge gates
    SNAP_DISTANCE: float = 20.0  # board units
    SNAP_ANGLE: float = 15.0  # degrees

    # Release-time alignment to the nearest right angle
    ROTATION_SNAP_STEP: float = 90.0
    ROTATION_SNAP_TOLERANCE: float = 10.0

    # Rotation granularity for the initial shuffle and for wheel rotation
    INITIAL_ROTATION_STEP: int = 15
    WHEEL_ROTATION_STEP: float = 15.0

    # Board layout
    BOARD_PADDING: float = 60.0
    BOARD_FILL_RATIO: float = 0.6

    # Tessellation
    LLOYD_ITERATIONS: int = 3
    DEFAULT_STRATEGY: Strategy = "organic"

    class Config:
        """Pydantic configuration class."""

        case_sensitive = True
        env_prefix = "PUZZLE_"


@lru_cache()
def get_settings() -> EngineSettings:
    """Get cached settings instance."""
    return EngineSettings()
