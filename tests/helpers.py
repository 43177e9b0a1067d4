"""
Fakes shared by the test suite.
"""

import hashlib
import hmac

from hookwarden.core.errors import AuthError
from hookwarden.core.models import CheckRunResult, RepositoryRef
from hookwarden.integrations.github.api import GitHubApi
from hookwarden.integrations.github.auth import InstallationAuthenticator

WEBHOOK_SECRET = "It's a secret to everybody"


class RecordingApi(GitHubApi):
    """GitHubApi fake recording every check run it is asked to create."""

    def __init__(self, error: Exception | None = None):
        self.calls: list[tuple[RepositoryRef, str]] = []
        self.error = error

    async def create_commit_status(self, repository: RepositoryRef, sha: str) -> CheckRunResult:
        self.calls.append((repository, sha))
        if self.error:
            raise self.error
        return CheckRunResult(id=len(self.calls), conclusion="success", title="hookwarden")


class FakeAuthenticator(InstallationAuthenticator):
    """Installation authenticator handing out a single RecordingApi."""

    def __init__(self, api: RecordingApi | None = None, error: AuthError | None = None):
        self.api = api or RecordingApi()
        self.error = error
        self.requested: list[int] = []
        self.closed = False

    async def for_installation(self, installation_id: int) -> GitHubApi:
        self.requested.append(installation_id)
        if self.error:
            raise self.error
        return self.api

    async def close(self) -> None:
        self.closed = True


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
