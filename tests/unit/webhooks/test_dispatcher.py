import pytest

from hookwarden.core.errors import (
    ActionFailedError,
    AuthenticationFailedError,
    InstallationExchangeError,
    MissingInstallationError,
    MissingRepositoryError,
    UpstreamFailureError,
)
from hookwarden.core.models import EventType, InstallationRef, RepositoryRef, WebhookEvent
from hookwarden.webhooks.dispatcher import WebhookDispatcher, handle_event
from hookwarden.webhooks.models import (
    CheckRunPayload,
    CheckSuitePayload,
    CommitRef,
    PingPayload,
    PullRequest,
    PullRequestPayload,
    PushPayload,
)
from tests.helpers import FakeAuthenticator, RecordingApi

REPO = RepositoryRef(name="repo", owner="octo")
INSTALLATION = InstallationRef(id=42)


def _pull_request_event(repository=REPO, installation=INSTALLATION) -> WebhookEvent:
    payload = PullRequestPayload(action="opened", pull_request=PullRequest(head=CommitRef(sha="abc123")))
    return WebhookEvent(
        kind=EventType.PULL_REQUEST,
        name="pull_request",
        payload=payload,
        installation=installation,
        repository=repository,
    )


@pytest.mark.asyncio
async def test_ping_returns_zen_without_authenticating(fake_authenticator):
    event = WebhookEvent(kind=EventType.PING, name="ping", payload=PingPayload(zen="Design for failure."))

    result = await handle_event(fake_authenticator, event)

    assert result == "Design for failure."
    assert fake_authenticator.requested == []


@pytest.mark.asyncio
async def test_ping_with_installation_still_skips_authentication(fake_authenticator):
    event = WebhookEvent(
        kind=EventType.PING,
        name="ping",
        payload=PingPayload(zen="Approachable is better than simple."),
        installation=INSTALLATION,
    )
    dispatcher = WebhookDispatcher(fake_authenticator)

    first = await dispatcher.dispatch(event)
    second = await dispatcher.dispatch(event)

    assert first == second == "Approachable is better than simple."
    assert fake_authenticator.requested == []


@pytest.mark.asyncio
async def test_pull_request_creates_one_check_run_on_head(fake_authenticator, fake_api):
    result = await handle_event(fake_authenticator, _pull_request_event())

    assert result is None
    assert fake_authenticator.requested == [42]
    assert fake_api.calls == [(REPO, "abc123")]


@pytest.mark.asyncio
async def test_missing_installation_makes_no_calls(fake_authenticator, fake_api):
    with pytest.raises(MissingInstallationError):
        await handle_event(fake_authenticator, _pull_request_event(installation=None))

    assert fake_authenticator.requested == []
    assert fake_api.calls == []


@pytest.mark.asyncio
async def test_authentication_failure_is_reported():
    authenticator = FakeAuthenticator(error=InstallationExchangeError(42, "unexpected status 401"))

    with pytest.raises(AuthenticationFailedError) as exc_info:
        await handle_event(authenticator, _pull_request_event())

    assert exc_info.value.installation_id == 42
    assert authenticator.api.calls == []


@pytest.mark.asyncio
async def test_pull_request_without_repository(fake_authenticator, fake_api):
    with pytest.raises(MissingRepositoryError):
        await handle_event(fake_authenticator, _pull_request_event(repository=None))

    assert fake_api.calls == []


@pytest.mark.asyncio
async def test_api_failure_becomes_action_failure():
    api = RecordingApi(error=UpstreamFailureError("unexpected status 422", status=422))
    authenticator = FakeAuthenticator(api=api)

    with pytest.raises(ActionFailedError) as exc_info:
        await handle_event(authenticator, _pull_request_event())

    assert exc_info.value.kind is EventType.PULL_REQUEST
    assert len(api.calls) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kind, name, payload",
    [
        (EventType.PUSH, "push", PushPayload(ref="refs/heads/main")),
        (EventType.CHECK_RUN, "check_run", CheckRunPayload(action="completed")),
        (EventType.OTHER, "star", {"action": "created"}),
    ],
)
async def test_acknowledged_events_take_no_action(fake_authenticator, fake_api, kind, name, payload):
    event = WebhookEvent(kind=kind, name=name, payload=payload, installation=INSTALLATION, repository=REPO)

    result = await handle_event(fake_authenticator, event)

    assert result is None
    assert fake_authenticator.requested == [42]
    assert fake_api.calls == []


@pytest.mark.asyncio
async def test_check_suite_requires_repository(fake_authenticator, fake_api):
    event = WebhookEvent(
        kind=EventType.CHECK_SUITE,
        name="check_suite",
        payload=CheckSuitePayload(action="requested", check_suite={"id": 9}),
        installation=INSTALLATION,
    )

    with pytest.raises(MissingRepositoryError):
        await handle_event(fake_authenticator, event)

    assert fake_api.calls == []


@pytest.mark.asyncio
async def test_check_suite_with_repository_is_acknowledged(fake_authenticator, fake_api):
    event = WebhookEvent(
        kind=EventType.CHECK_SUITE,
        name="check_suite",
        payload=CheckSuitePayload(action="requested"),
        installation=INSTALLATION,
        repository=REPO,
    )

    assert await handle_event(fake_authenticator, event) is None
    assert fake_api.calls == []
