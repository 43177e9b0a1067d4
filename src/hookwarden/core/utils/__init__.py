"""
Core utilities: structured logging and metrics.
"""

from hookwarden.core.utils.logging import configure_logging, log_operation

__all__ = [
    "configure_logging",
    "log_operation",
]
