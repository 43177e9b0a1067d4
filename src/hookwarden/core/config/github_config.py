"""
GitHub App configuration.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class GitHubConfig:
    """GitHub App configuration."""

    app_id: int
    private_key: str = field(repr=False)
    webhook_secret: str = field(repr=False)
    api_base_url: str
    http_timeout: float = 30.0
