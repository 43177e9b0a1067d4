"""
Core error classes for hookwarden.

Errors are grouped by where they originate: identity (``AuthError``), the
GitHub API capability (``ApiError``) and event dispatch (``DispatchError``).
Only ``DispatchError`` reaches the HTTP boundary, which maps it to a fixed,
non-sensitive message.
"""

from typing import Any


class HookwardenError(Exception):
    """Base class for all hookwarden errors."""


class ConfigurationError(HookwardenError):
    """Raised when the environment configuration is missing or invalid."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(f"Configuration errors: {', '.join(errors)}")


# --- Identity ---


class AuthError(HookwardenError):
    """Raised when the app or one of its installations cannot be authenticated."""


class InvalidCredentialError(AuthError):
    """Raised when the private key cannot be parsed or the base URI is malformed."""


class InstallationExchangeError(AuthError):
    """Raised when the app JWT cannot be exchanged for an installation token."""

    def __init__(self, installation_id: int, cause: str) -> None:
        self.installation_id = installation_id
        self.cause = cause
        super().__init__(f"Token exchange failed for installation {installation_id}: {cause}")


# --- API capability ---


class ApiError(HookwardenError):
    """Raised when an action against the GitHub API fails."""


class MissingOwnerError(ApiError):
    """Raised when the repository reference has no owner."""

    def __init__(self, repository: str) -> None:
        self.repository = repository
        super().__init__(f"Repository '{repository}' has no owner")


class UpstreamFailureError(ApiError):
    """Raised on transport errors or unexpected responses from GitHub."""

    def __init__(self, cause: str, status: int | None = None) -> None:
        self.cause = cause
        self.status = status
        super().__init__(f"GitHub request failed: {cause}")


# --- Dispatch ---


class DispatchError(HookwardenError):
    """Base class for failures while reacting to a webhook event."""

    public_message = "failed to handle event"


class MissingInstallationError(DispatchError):
    """Raised when an installation-scoped event carries no installation."""

    public_message = "missing installation in the event"

    def __init__(self) -> None:
        super().__init__("Missing installation in the event")


class MissingRepositoryError(DispatchError):
    """Raised when an event that requires a repository carries none."""

    public_message = "missing repository parent in the event"

    def __init__(self) -> None:
        super().__init__("Missing repository in the event")


class AuthenticationFailedError(DispatchError):
    """Raised when the installation-scoped client cannot be obtained."""

    public_message = "unable to access installation"

    def __init__(self, installation_id: int) -> None:
        self.installation_id = installation_id
        super().__init__(f"Unable to authenticate installation {installation_id}")


class ActionFailedError(DispatchError):
    """Raised when the reaction to an event fails."""

    public_message = "failed to handle event"

    def __init__(self, kind: Any) -> None:
        self.kind = kind
        super().__init__(f"Failed to handle event: {kind}")


# --- HTTP boundary ---


class EventDecodeError(HookwardenError):
    """Raised when a verified body cannot be decoded into a webhook event."""
