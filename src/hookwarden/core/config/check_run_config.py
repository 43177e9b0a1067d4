"""
Check run configuration.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CheckRunConfig:
    """Settings for the check run created on pull request heads."""

    name: str = "hookwarden"
    details_url: str | None = None
    template_path: str | None = None
