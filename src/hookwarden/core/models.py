from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EventType(Enum):
    """GitHub event kinds the dispatcher knows about."""

    PING = "ping"
    PULL_REQUEST = "pull_request"
    PUSH = "push"
    CHECK_RUN = "check_run"
    CHECK_SUITE = "check_suite"
    OTHER = "other"

    @classmethod
    def from_header(cls, event_name: str | None) -> "EventType":
        """
        Map an ``X-GitHub-Event`` header value to an event kind.

        Suffixes such as ``pull_request.opened`` are dropped. Anything not
        modelled here becomes ``OTHER``.
        """
        if not event_name:
            return cls.OTHER
        normalized = event_name.strip().lower().split(".")[0]
        try:
            kind = cls(normalized)
        except ValueError:
            return cls.OTHER
        return kind


@dataclass(frozen=True)
class AppCredential:
    """The long-lived identity of the GitHub App itself."""

    app_id: int
    private_key: str = field(repr=False)
    base_url: str


@dataclass(frozen=True)
class InstallationRef:
    """Installation carried by an event (full or minimal shape)."""

    id: int
    node_id: str | None = None


@dataclass(frozen=True)
class RepositoryRef:
    """Owner and name of the repository an event refers to."""

    name: str
    owner: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}" if self.owner else self.name


@dataclass(frozen=True)
class WebhookEvent:
    """
    A decoded, signature-verified webhook delivery.

    ``payload`` is the kind-specific model from ``hookwarden.webhooks.models``
    (or the raw dict for ``EventType.OTHER``).
    """

    kind: EventType
    name: str
    payload: Any
    installation: InstallationRef | None = None
    repository: RepositoryRef | None = None
    delivery_id: str | None = None

    @property
    def installation_id(self) -> int | None:
        return self.installation.id if self.installation else None

    @property
    def repo_full_name(self) -> str:
        """The full name of the repository (e.g., 'owner/repo')."""
        return self.repository.full_name if self.repository else ""


@dataclass(frozen=True)
class InstallationToken:
    """Installation access token and its platform-declared expiry."""

    token: str = field(repr=False)
    expires_at: datetime

    def expires_in(self, now: datetime | None = None) -> float:
        """Seconds until the token expires (negative once expired)."""
        now = now or datetime.now(UTC)
        return (self.expires_at - now).total_seconds()


class CheckRunConclusion(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    NEUTRAL = "neutral"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"
    TIMED_OUT = "timed_out"
    ACTION_REQUIRED = "action_required"

    def __str__(self) -> str:
        return self.value


class AnnotationLevel(str, Enum):
    NOTICE = "notice"
    WARNING = "warning"
    FAILURE = "failure"

    def __str__(self) -> str:
        return self.value


class CheckRunAnnotation(BaseModel):
    """Line-level annotation attached to a check run."""

    path: str = Field(..., description="Path of the file, relative to the repository root")
    start_line: int = Field(..., ge=1)
    end_line: int = Field(..., ge=1)
    start_column: int | None = None
    end_column: int | None = None
    annotation_level: AnnotationLevel = AnnotationLevel.WARNING
    message: str
    title: str | None = None
    raw_details: str | None = None


class CheckRunResult(BaseModel):
    """Check run as reported back by GitHub after creation."""

    id: int
    conclusion: CheckRunConclusion | None = None
    title: str | None = None
    summary: str | None = None
    annotations: list[CheckRunAnnotation] = Field(default_factory=list)
    html_url: str | None = None
