"""
Configuration and logging setup for pipetune.

Settings are read from environment variables (prefixed with ``PIPETUNE_``)
and an optional ``.env`` file, validated with Pydantic.
"""

import logging
import os
from functools import lru_cache
from logging import Handler
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def setup_logging(
    log_file: Optional[str] = None,
    log_level: str = "INFO",
    rotation_type: str = "size",
    rotation_when: Optional[str] = None,
    rotation_interval: int = 1,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Configure the root logger for batch tuning runs.

    Args:
        log_file: Optional path to a log file (directory is created if needed).
            When omitted only console logging is configured.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        rotation_type: "size" or "time" rotation for the file handler.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove all existing handlers to prevent duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        try:
            file_handler: Handler
            if rotation_type and rotation_type.lower() in ("time", "timed"):
                file_handler = TimedRotatingFileHandler(
                    filename=log_file,
                    when=rotation_when or "midnight",
                    interval=rotation_interval,
                    backupCount=backup_count,
                    encoding="utf-8",
                )
            else:
                file_handler = RotatingFileHandler(
                    log_file,
                    maxBytes=max_bytes,
                    backupCount=backup_count,
                    encoding="utf-8",
                )
            file_handler.setLevel(level)
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s [%(levelname)8s] %(name)s: %(message)s "
                    "[%(filename)s:%(lineno)d in %(funcName)s()]"
                )
            )
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning(f"Could not setup file logging to {log_file}: {e}")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    root_logger.addHandler(console_handler)

    # Silence overly verbose loggers from dependencies
    for logger_name in ("joblib", "matplotlib", "numexpr"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.debug(f"Logging initialized. Log file: {log_file}, Level: {log_level}")


class Settings(BaseSettings):
    """Default options for splitting, tuning and scoring."""

    model_config = SettingsConfigDict(
        env_prefix="PIPETUNE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # === REPRODUCIBILITY ===
    RANDOM_STATE: int = 42

    # === TUNING ===
    N_JOBS: int = 1
    CV_FOLDS: int = 10
    DEFAULT_METRIC: str = "accuracy"
    # "parsimony" or "metric:<name>"
    TIE_BREAK: str = "parsimony"
    CHECK_CONVERGENCE: bool = True

    # === SCORING ===
    PROBABILITY_THRESHOLD: float = 0.5

    # === LOGGING ===
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    LOG_ROTATION_TYPE: str = "size"
    LOG_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 5

    @field_validator("CV_FOLDS")
    @classmethod
    def validate_folds(cls, v: int) -> int:
        if v < 2:
            raise ValueError("CV_FOLDS must be at least 2")
        return v

    @field_validator("N_JOBS")
    @classmethod
    def validate_n_jobs(cls, v: int) -> int:
        if v == 0:
            raise ValueError("N_JOBS must be a positive integer or negative (joblib convention)")
        return v

    @field_validator("PROBABILITY_THRESHOLD")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("PROBABILITY_THRESHOLD must be within [0, 1]")
        return v

    @field_validator("TIE_BREAK")
    @classmethod
    def validate_tie_break(cls, v: str) -> str:
        if v != "parsimony" and not v.startswith("metric:"):
            raise ValueError("TIE_BREAK must be 'parsimony' or 'metric:<name>'")
        return v

    def setup_logging(self) -> None:
        setup_logging(
            log_file=self.LOG_FILE,
            log_level=self.LOG_LEVEL,
            rotation_type=self.LOG_ROTATION_TYPE,
            max_bytes=self.LOG_MAX_BYTES,
            backup_count=self.LOG_BACKUP_COUNT,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get pipetune settings.
    Uses lru_cache to avoid re-reading the environment on every call.
    """
    return Settings()
