"""
ALIGNIFY Configuration

Environment variables and application settings.
"""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "ALIGNIFY"
    DEBUG: bool = True

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8080"]

    # Pose matching defaults (per-session overrides allowed)
    BODY_FOCUS_MODE: str = "full"  # full, upper, lower
    LANDMARK_SMOOTHING_WINDOW: int = 5
    ANGLE_SMOOTHING_WINDOW: int = 5
    TOLERANCE_DEGREES: float = 60.0
    MATCH_THRESHOLD: float = 0.3
    MIN_LANDMARK_VISIBILITY: float = 0.5
    USE_DEPTH: bool = False

    # Hold-to-advance timing
    REQUIRED_HOLD_SECONDS: float = 4.0
    INCREMENT_RATE: float = 1.0
    DECAY_RATE: float = 1.0
    MAX_FRAME_DELTA_SECONDS: float = 0.5

    # Session summary
    CHALLENGING_POSE_ACCURACY: int = 60

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
