"""
Installation token cache configuration.

The cache is off by default: every request exchanges a fresh installation token.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TokenCacheConfig:
    """Token cache configuration."""

    enabled: bool = False
    maxsize: int = 256
    # Seconds subtracted from the platform-declared expiry
    expiry_margin: int = 60
