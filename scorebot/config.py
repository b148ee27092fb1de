"""
Configuration management for the market opportunity scorer.

This module handles all configuration loading from environment variables
and provides type-safe access to configuration values throughout the application.
Scoring thresholds are fixed constants of the engine modules and are not
configurable here; only the scanning, scheduling and reporting around the
engine are.
"""

import os
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


class Config:
    """
    Centralized configuration class for the scorer.

    All configuration values are loaded from environment variables with
    sensible defaults where appropriate.
    """

    # Polymarket Configuration
    GAMMA_API_URL: str = os.getenv(
        "GAMMA_API_URL",
        "https://gamma-api.polymarket.com"
    )

    # Request Configuration
    API_TIMEOUT: int = int(os.getenv("API_TIMEOUT", "30"))
    API_MAX_RETRIES: int = int(os.getenv("API_MAX_RETRIES", "3"))

    # Scan Parameters
    MAX_MARKETS_TO_SCAN: int = int(os.getenv("MAX_MARKETS_TO_SCAN", "100"))
    SNAPSHOT_HISTORY_LIMIT: int = int(os.getenv("SNAPSHOT_HISTORY_LIMIT", "30"))

    # Opportunity Filters
    MIN_EDGE: float = float(os.getenv("MIN_EDGE", "0.05"))
    MIN_ATTENTION: float = float(os.getenv("MIN_ATTENTION", "0.3"))
    MIN_TIER: str = os.getenv("MIN_TIER", "C").upper()

    # Scheduler Configuration
    SCAN_INTERVAL_MINUTES: int = int(os.getenv("SCAN_INTERVAL_MINUTES", "15"))
    SCHEDULER_TIMEZONE: str = os.getenv("SCHEDULER_TIMEZONE", "UTC")

    # Report Configuration
    MAX_SCORES_IN_REPORT: int = int(os.getenv("MAX_SCORES_IN_REPORT", "10"))

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Optional[Path] = Path(os.getenv("LOG_FILE", "logs/scorebot.log")) if os.getenv("LOG_FILE") else None

    @classmethod
    def validate(cls) -> tuple[bool, list[str]]:
        """
        Validate configuration values.

        Returns:
            tuple: (is_valid, list_of_errors)
        """
        errors: list[str] = []

        if not cls.GAMMA_API_URL:
            errors.append("GAMMA_API_URL is required but not set")

        if cls.API_TIMEOUT < 1:
            errors.append("API_TIMEOUT must be at least 1")

        if cls.API_MAX_RETRIES < 0:
            errors.append("API_MAX_RETRIES cannot be negative")

        if cls.MAX_MARKETS_TO_SCAN < 1:
            errors.append("MAX_MARKETS_TO_SCAN must be at least 1")

        if cls.SNAPSHOT_HISTORY_LIMIT < 1:
            errors.append("SNAPSHOT_HISTORY_LIMIT must be at least 1")

        if cls.SCAN_INTERVAL_MINUTES < 1:
            errors.append("SCAN_INTERVAL_MINUTES must be at least 1")

        if not (0.0 <= cls.MIN_EDGE <= 1.0):
            errors.append("MIN_EDGE must be between 0.0 and 1.0")

        if not (0.0 <= cls.MIN_ATTENTION <= 1.0):
            errors.append("MIN_ATTENTION must be between 0.0 and 1.0")

        if cls.MIN_TIER not in ("S", "A", "B", "C", "D"):
            errors.append("MIN_TIER must be one of S, A, B, C, D")

        return (len(errors) == 0, errors)

    @classmethod
    def ensure_directories(cls) -> None:
        """
        Ensure all required directories exist.

        Creates the log directory if a log file is configured.
        """
        if cls.LOG_FILE:
            cls.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
