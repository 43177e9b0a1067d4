"""
Configuration package - unified access point.

This package provides all configuration classes and the loader.
"""

from hookwarden.core.config.settings import Config, load_config

__all__ = [
    "Config",
    "load_config",
]
