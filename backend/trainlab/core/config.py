"""
Application configuration.
Tunable analytics thresholds and logging options, loaded from environment variables.
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or console

    # Analytics Debug Logging - logs per-stage timings and sizes
    ANALYTICS_DEBUG_LOG: bool = False

    # Interval segmentation
    SPLIT_DISTANCE_M: float = 1000.0
    MIN_TRAILING_SPLIT_M: float = 500.0

    # Pause detection
    PAUSE_SPEED_MPS: float = 0.1
    PAUSE_PACE_S_PER_KM: float = 1200.0  # 20:00 /km

    # Memoization
    CACHE_MAX_ENTRIES: int = 32

    # Hover lookup tolerance outside the plot area
    HOVER_TOLERANCE_PX: float = 20.0

    # Built-in zone thresholds used when no athlete profile is supplied
    DEFAULT_LT1_POWER: float = 180.0
    DEFAULT_LT2_POWER: float = 250.0
    DEFAULT_LT1_HR: float = 145.0
    DEFAULT_LT2_HR: float = 170.0
    DEFAULT_LT1_PACE_S_PER_KM: float = 330.0  # 5:30 /km
    DEFAULT_LT2_PACE_S_PER_KM: float = 270.0  # 4:30 /km

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
