"""Configuration settings for the trainer."""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Practice defaults
DEFAULT_TIME_LIMIT_SECONDS = 60
DEFAULT_DIGIT_COUNT = 3
MIN_DIGIT_COUNT = 2
MAX_DIGIT_COUNT = 7
RECALL_SEQUENCE_LENGTH = 30

# Starting point for a fresh process
INITIAL_ACCURACY = 85
INITIAL_SPEED = 25


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


def get_gemini_api_key() -> str:
    """Get the Gemini API key, accepting the legacy API_KEY name."""
    return os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY", "")


@dataclass
class GeminiSettings:
    """Content generation service settings."""
    api_key: str = field(default_factory=get_gemini_api_key)
    model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    timeout: float = float(os.getenv("GEMINI_TIMEOUT", "10"))
    hint_temperature: float = float(os.getenv("GEMINI_HINT_TEMPERATURE", "0.7"))
    story_temperature: float = float(os.getenv("GEMINI_STORY_TEMPERATURE", "0.9"))


@dataclass
class PracticeSettings:
    """Practice session defaults."""
    time_limit_seconds: int = int(os.getenv("PRACTICE_TIME_LIMIT", str(DEFAULT_TIME_LIMIT_SECONDS)))
    digit_count: int = int(os.getenv("PRACTICE_DIGIT_COUNT", str(DEFAULT_DIGIT_COUNT)))
    min_digit_count: int = MIN_DIGIT_COUNT
    max_digit_count: int = MAX_DIGIT_COUNT
    recall_sequence_length: int = int(os.getenv("RECALL_SEQUENCE_LENGTH", str(RECALL_SEQUENCE_LENGTH)))
    initial_accuracy: int = int(os.getenv("INITIAL_ACCURACY", str(INITIAL_ACCURACY)))
    initial_speed: int = int(os.getenv("INITIAL_SPEED", str(INITIAL_SPEED)))


@dataclass
class MonitoringSettings:
    """Prometheus metrics endpoint settings."""
    enabled: bool = os.getenv("MONITORING_ENABLED", "false").lower() == "true"
    port: int = int(os.getenv("MONITORING_PORT", "9090"))


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_gemini_settings() -> GeminiSettings:
    """Get content service settings."""
    return GeminiSettings()


def get_practice_settings() -> PracticeSettings:
    """Get practice settings."""
    return PracticeSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    gemini: GeminiSettings = field(default_factory=get_gemini_settings)
    practice: PracticeSettings = field(default_factory=get_practice_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.practice.time_limit_seconds < 1:
            raise ValueError("PRACTICE_TIME_LIMIT must be positive")

        if self.practice.min_digit_count > self.practice.max_digit_count:
            raise ValueError("Minimum digit count cannot be greater than maximum digit count")

        if self.practice.digit_count < self.practice.min_digit_count or \
           self.practice.digit_count > self.practice.max_digit_count:
            raise ValueError(
                f"PRACTICE_DIGIT_COUNT must be between {self.practice.min_digit_count} "
                f"and {self.practice.max_digit_count}"
            )

        if self.practice.recall_sequence_length < 1:
            raise ValueError("RECALL_SEQUENCE_LENGTH must be positive")

        if not 0 <= self.practice.initial_accuracy <= 100:
            raise ValueError("INITIAL_ACCURACY must be between 0 and 100")

        if self.practice.initial_speed < 0:
            raise ValueError("INITIAL_SPEED cannot be negative")

        if self.gemini.timeout <= 0:
            raise ValueError("GEMINI_TIMEOUT must be positive")


# Create global settings instance
settings = Settings()
settings.validate()
