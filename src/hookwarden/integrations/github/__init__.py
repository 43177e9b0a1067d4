"""
GitHub API adapter.

This package provides GitHub App authentication and the installation-scoped
API capability used by the webhook dispatcher.
"""

from hookwarden.integrations.github.api import GitHubApi, InstallationClient
from hookwarden.integrations.github.auth import GitHubApp, InstallationAuthenticator
from hookwarden.integrations.github.check_runs import CheckRunTemplate, load_check_run_template
from hookwarden.integrations.github.token_cache import CachedInstallationAuthenticator

__all__ = [
    "CachedInstallationAuthenticator",
    "CheckRunTemplate",
    "GitHubApi",
    "GitHubApp",
    "InstallationAuthenticator",
    "InstallationClient",
    "load_check_run_template",
]
