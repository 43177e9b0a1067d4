import json

import pytest
from httpx import ASGITransport, AsyncClient

from hookwarden.core.config import load_config
from hookwarden.core.errors import InstallationExchangeError
from hookwarden.main import create_app
from tests.helpers import FakeAuthenticator, sign

ZEN = "Half measures are as bad as nothing at all."

PULL_REQUEST = {
    "action": "synchronize",
    "number": 1,
    "pull_request": {"number": 1, "head": {"sha": "abc123", "ref": "feature"}},
    "repository": {"name": "repo", "full_name": "octo/repo", "owner": {"login": "octo"}},
    "installation": {"id": 42, "node_id": "MDIz"},
}


@pytest.fixture
def app(app_env, fake_authenticator):
    return create_app(load_config(), authenticator_factory=lambda *args, **kwargs: fake_authenticator)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def _deliver(client: AsyncClient, event: str, data, method: str = "POST", signature: str | None = None):
    body = data if isinstance(data, bytes) else json.dumps(data).encode()
    headers = {
        "X-GitHub-Event": event,
        "X-GitHub-Delivery": "72d3162e-cc78-11e3-81ab-4c9367dc0958",
        "X-Hub-Signature-256": signature if signature is not None else sign(body),
        "Content-Type": "application/json",
    }
    return await client.request(method, "/event_handler", content=body, headers=headers)


@pytest.mark.asyncio
async def test_ping_answers_with_zen(client, fake_authenticator):
    response = await _deliver(client, "ping", {"zen": ZEN, "hook_id": 1})

    assert response.status_code == 200
    assert response.text == ZEN
    assert fake_authenticator.requested == []


@pytest.mark.asyncio
@pytest.mark.parametrize("event", ["ping", "pull_request", "push", "star"])
async def test_invalid_signature_is_rejected_before_decoding(client, fake_authenticator, event):
    response = await _deliver(client, event, {"zen": ZEN}, signature="sha256=" + "0" * 64)

    assert response.status_code == 400
    assert fake_authenticator.requested == []


@pytest.mark.asyncio
async def test_missing_signature_is_rejected(client):
    response = await client.post("/event_handler", content=b"{}", headers={"X-GitHub-Event": "ping"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_pull_request_creates_check_run(client, fake_authenticator, fake_api):
    response = await _deliver(client, "pull_request", PULL_REQUEST)

    assert response.status_code == 204
    assert response.content == b""
    assert fake_authenticator.requested == [42]
    assert [(repo.full_name, sha) for repo, sha in fake_api.calls] == [("octo/repo", "abc123")]


@pytest.mark.asyncio
async def test_missing_installation_is_a_server_error(client, fake_api):
    data = {key: value for key, value in PULL_REQUEST.items() if key != "installation"}

    response = await _deliver(client, "pull_request", data)

    assert response.status_code == 500
    assert response.text == "missing installation in the event"
    assert fake_api.calls == []


@pytest.mark.asyncio
async def test_authentication_failure_does_not_leak_details(app_env):
    authenticator = FakeAuthenticator(error=InstallationExchangeError(42, "unexpected status 401"))
    app = create_app(load_config(), authenticator_factory=lambda *args, **kwargs: authenticator)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await _deliver(client, "pull_request", PULL_REQUEST)

    assert response.status_code == 500
    assert response.text == "unable to access installation"
    assert "401" not in response.text


@pytest.mark.asyncio
@pytest.mark.parametrize("event", ["push", "check_run", "deployment"])
async def test_acknowledged_events_return_no_content(client, fake_api, event):
    response = await _deliver(client, event, {"installation": {"id": 42}, "repository": {"name": "repo"}})

    assert response.status_code == 204
    assert fake_api.calls == []


@pytest.mark.asyncio
async def test_undecodable_body_is_a_bad_request(client):
    response = await _deliver(client, "pull_request", b"not json")

    assert response.status_code == 400
    assert response.text == "invalid webhook payload"


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE"])
async def test_any_method_is_accepted(client, method):
    response = await _deliver(client, "ping", {"zen": ZEN}, method=method)

    assert response.status_code == 200
    assert response.text == ZEN


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
