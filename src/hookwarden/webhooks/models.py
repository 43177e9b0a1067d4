import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hookwarden.core.errors import EventDecodeError
from hookwarden.core.models import EventType, InstallationRef, RepositoryRef, WebhookEvent


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class WebhookOwner(_Payload):
    """Repository owner (user or organisation)."""

    login: str = Field(..., description="Account login of the owner")


class WebhookRepository(_Payload):
    """GitHub repository metadata from webhook payload."""

    name: str = Field(..., description="Repository name (without owner)")
    full_name: str | None = Field(None, description="Owner/repo format")
    owner: WebhookOwner | None = Field(None, description="Owning account, absent in some payloads")

    def to_ref(self) -> RepositoryRef:
        return RepositoryRef(name=self.name, owner=self.owner.login if self.owner else None)


class WebhookInstallation(_Payload):
    """Installation object; GitHub sends either a full or a minimal (id + node_id) shape."""

    id: int
    node_id: str | None = None

    def to_ref(self) -> InstallationRef:
        return InstallationRef(id=self.id, node_id=self.node_id)


class PingPayload(_Payload):
    zen: str | None = None
    hook_id: int | None = None


class CommitRef(_Payload):
    sha: str
    ref: str | None = None


class PullRequest(_Payload):
    number: int | None = None
    head: CommitRef


class PullRequestPayload(_Payload):
    action: str | None = None
    number: int | None = None
    pull_request: PullRequest


class PushPayload(_Payload):
    ref: str | None = None
    before: str | None = None
    after: str | None = None


class CheckRunPayload(_Payload):
    action: str | None = None
    check_run: dict[str, Any] = Field(default_factory=dict)


class CheckSuitePayload(_Payload):
    """The check suite body is kept unparsed."""

    action: str | None = None
    check_suite: dict[str, Any] = Field(default_factory=dict)


class _Envelope(_Payload):
    installation: WebhookInstallation | None = None
    repository: WebhookRepository | None = None


_PAYLOAD_MODELS: dict[EventType, type[BaseModel]] = {
    EventType.PING: PingPayload,
    EventType.PULL_REQUEST: PullRequestPayload,
    EventType.PUSH: PushPayload,
    EventType.CHECK_RUN: CheckRunPayload,
    EventType.CHECK_SUITE: CheckSuitePayload,
}


def decode_event(event_name: str | None, body: bytes, delivery_id: str | None = None) -> WebhookEvent:
    """
    Decode a verified request body into a typed ``WebhookEvent``.

    Raises:
        EventDecodeError: If the body is not a JSON object or the kind-specific
            payload does not match its model.
    """
    if not event_name:
        raise EventDecodeError("Missing X-GitHub-Event header")

    try:
        data = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise EventDecodeError(f"Body is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise EventDecodeError("Body must be a JSON object")

    kind = EventType.from_header(event_name)
    try:
        envelope = _Envelope.model_validate(data)
        model = _PAYLOAD_MODELS.get(kind)
        payload: Any = model.model_validate(data) if model else data
    except ValidationError as e:
        raise EventDecodeError(f"Invalid {kind.value} payload: {e.error_count()} error(s)") from e

    return WebhookEvent(
        kind=kind,
        name=event_name,
        payload=payload,
        installation=envelope.installation.to_ref() if envelope.installation else None,
        repository=envelope.repository.to_ref() if envelope.repository else None,
        delivery_id=delivery_id,
    )
