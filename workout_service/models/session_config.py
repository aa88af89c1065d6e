"""
ALIGNIFY Workout Service - Session Configuration

Per-session pipeline parameters. Defaults come from the application
settings; callers may override any field. Validation runs when a session
starts, and a bad value stops the session from starting at all.
"""

from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.config import settings
from .landmarks import BodyFocusMode


class WorkoutEngineError(Exception):
    """Base class for pose-matching engine errors."""


class ConfigurationError(WorkoutEngineError):
    """Invalid session configuration; raised before any frame is processed."""


class SessionStateError(WorkoutEngineError):
    """Operation not allowed in the session's current state."""


class SessionConfig(BaseModel):
    """Validated parameters for one workout session."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    body_focus_mode: BodyFocusMode = BodyFocusMode.FULL
    landmark_smoothing_window: int = Field(5, gt=0)
    angle_smoothing_window: int = Field(5, gt=0)
    tolerance_degrees: float = Field(60.0, gt=0)
    match_threshold: float = Field(0.3, gt=0, le=1)
    required_hold_seconds: float = Field(4.0, gt=0)
    increment_rate: float = Field(1.0, gt=0)
    decay_rate: float = Field(1.0, ge=0)
    max_frame_delta_seconds: float = Field(0.5, gt=0)
    min_landmark_visibility: float = Field(0.5, ge=0, le=1)
    use_depth: bool = False

    @classmethod
    def defaults(cls) -> Dict[str, Any]:
        """Default values taken from the environment-backed settings."""
        return {
            "body_focus_mode": settings.BODY_FOCUS_MODE,
            "landmark_smoothing_window": settings.LANDMARK_SMOOTHING_WINDOW,
            "angle_smoothing_window": settings.ANGLE_SMOOTHING_WINDOW,
            "tolerance_degrees": settings.TOLERANCE_DEGREES,
            "match_threshold": settings.MATCH_THRESHOLD,
            "required_hold_seconds": settings.REQUIRED_HOLD_SECONDS,
            "increment_rate": settings.INCREMENT_RATE,
            "decay_rate": settings.DECAY_RATE,
            "max_frame_delta_seconds": settings.MAX_FRAME_DELTA_SECONDS,
            "min_landmark_visibility": settings.MIN_LANDMARK_VISIBILITY,
            "use_depth": settings.USE_DEPTH,
        }

    @classmethod
    def resolve(
        cls,
        overrides: Optional[Union["SessionConfig", Mapping[str, Any]]] = None,
    ) -> "SessionConfig":
        """
        Merge overrides onto the defaults and validate.

        Raises:
            ConfigurationError: if any value is out of range or unknown
        """
        if isinstance(overrides, SessionConfig):
            return overrides

        values = cls.defaults()
        values.update({k: v for k, v in (overrides or {}).items() if v is not None})
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigurationError(f"Invalid session configuration: {problems}") from e
