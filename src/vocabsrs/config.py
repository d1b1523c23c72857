"""Configuration settings for the SRS engine and its stores."""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Learning settings
SRS_INTERVALS = [1, 10, 60, 720, 1440, 2880, 5760, 10080]  # minutes between reviews
REVIEW_STAGE = 3  # stage from which a word counts as "review"
MASTERED_STAGE = 7  # stage from which a word counts as "mastered"


def get_srs_intervals() -> list[int]:
    """Get the interval ladder from environment variable."""
    raw = os.getenv("SRS_INTERVALS", "")
    if not raw:
        return list(SRS_INTERVALS)
    return [int(value) for value in raw.split(",") if value.strip()]


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///vocabsrs.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class LearningSettings:
    """Learning process settings."""
    srs_intervals: list[int] = field(default_factory=get_srs_intervals)
    review_stage: int = int(os.getenv("REVIEW_STAGE", str(REVIEW_STAGE)))
    mastered_stage: int = int(os.getenv("MASTERED_STAGE", str(MASTERED_STAGE)))
    session_batch_size: int = int(os.getenv("SESSION_BATCH_SIZE", "20"))
    choice_options: int = int(os.getenv("CHOICE_OPTIONS", "4"))
    undo_window_seconds: float = float(os.getenv("UNDO_WINDOW_SECONDS", "3"))
    strict_sessions: bool = os.getenv("STRICT_SESSIONS", "false").lower() == "true"


@dataclass
class MonitoringSettings:
    """Prometheus metrics settings."""
    enabled: bool = os.getenv("METRICS_ENABLED", "false").lower() == "true"
    port: int = int(os.getenv("METRICS_PORT", "9090"))


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_learning_settings() -> LearningSettings:
    """Get learning settings."""
    return LearningSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    learning: LearningSettings = field(default_factory=get_learning_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        intervals = self.learning.srs_intervals
        if not intervals:
            raise ValueError("SRS_INTERVALS must not be empty")

        if any(value <= 0 for value in intervals):
            raise ValueError("SRS_INTERVALS must be positive")

        if any(a > b for a, b in zip(intervals, intervals[1:])):
            raise ValueError("SRS_INTERVALS must be non-decreasing")

        if self.learning.review_stage < 1:
            raise ValueError("REVIEW_STAGE must be positive")

        if self.learning.review_stage > self.learning.mastered_stage:
            raise ValueError("REVIEW_STAGE cannot be greater than MASTERED_STAGE")

        if self.learning.session_batch_size < 1:
            raise ValueError("SESSION_BATCH_SIZE must be positive")

        if self.learning.choice_options < 2:
            raise ValueError("CHOICE_OPTIONS must be at least 2")

        if self.learning.undo_window_seconds < 0:
            raise ValueError("UNDO_WINDOW_SECONDS cannot be negative")


# Create global settings instance
settings = Settings()
settings.validate()
