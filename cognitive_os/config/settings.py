import os
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Storage
    DATA_DIR: str = os.getenv(
        "DATA_DIR",
        os.path.join(os.path.expanduser("~"), ".cognitive_os", "memory")
    )
    DATABASE_URL: Optional[str] = None  # SQL backends are used when set

    # Control loop
    ANALYSIS_DAYS: int = 7
    HISTORY_RETENTION_DAYS: int = 30
    INTERVENTION_ENABLED: bool = True
    STATE_WRITE_ATTEMPTS: int = 3

    # Rule thresholds
    EXPANSION_TOPIC_THRESHOLD: int = 7
    UNFINISHED_THRESHOLD: int = 5
    ERROR_RECURRENCE_THRESHOLD: int = 3
    SCATTERED_STREAK_THRESHOLD: int = 3
    HIGH_LEVEL_DAYS_THRESHOLD: int = 3
    UNLOCK_UNRESOLVED_THRESHOLD: int = 3

    # Pattern thresholds
    PATTERN_TOPIC_THRESHOLD: int = 4
    PATTERN_LOW_ENERGY_DAYS: int = 3
    PATTERN_UNFINISHED_THRESHOLD: int = 5

    LOG_LEVEL: str = "INFO"


settings = Settings()
