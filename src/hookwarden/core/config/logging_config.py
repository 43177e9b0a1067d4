"""
Logging configuration.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "console"
