"""
GitHub App authentication.

Two layers of identity: the app authenticates itself with a short-lived RS256
JWT, then exchanges that JWT for an installation access token scoped to one
installation. Only the installation-scoped client is handed to the dispatcher.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, datetime
from urllib.parse import urlparse

import aiohttp
import jwt
import structlog
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from hookwarden.core.errors import InstallationExchangeError, InvalidCredentialError
from hookwarden.core.models import AppCredential, InstallationToken
from hookwarden.core.utils.logging import log_operation
from hookwarden.integrations.github.api import GITHUB_ACCEPT, GITHUB_API_VERSION, GitHubApi, InstallationClient
from hookwarden.integrations.github.check_runs import CheckRunTemplate

logger = structlog.get_logger(__name__)

# Backdated to tolerate clock drift; GitHub rejects JWTs valid for more than 10 minutes
JWT_BACKDATE_SECONDS = 60
JWT_LIFETIME_SECONDS = 540


class InstallationAuthenticator(ABC):
    """Exchanges an installation id for an installation-scoped API client."""

    @abstractmethod
    async def for_installation(self, installation_id: int) -> GitHubApi:
        """
        Return a client acting as ``installation_id``.

        Raises:
            AuthError: If the installation cannot be authenticated.
        """
        raise NotImplementedError

    async def close(self) -> None:
        """Release any resources held by the authenticator."""


# Signature of ``GitHubApp.authenticate_app``; the app factory accepts any
# callable of this shape so tests can substitute a fake authenticator.
AppAuthenticatorFactory = Callable[..., InstallationAuthenticator]


class GitHubApp(InstallationAuthenticator):
    """
    The GitHub App identity.

    Built once at startup and shared read-only by every request. Every call to
    ``for_installation`` performs a fresh token exchange.
    """

    def __init__(
        self,
        credential: AppCredential,
        signing_key: rsa.RSAPrivateKey,
        template: CheckRunTemplate | None = None,
        timeout: float = 30.0,
    ):
        self.credential = credential
        self._signing_key = signing_key
        self._template = template or CheckRunTemplate()
        self._timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    def __repr__(self) -> str:
        return f"GitHubApp(app_id={self.credential.app_id}, base_url={self.credential.base_url!r})"

    @classmethod
    def authenticate_app(
        cls,
        base_url: str,
        app_id: int,
        private_key: str,
        template: CheckRunTemplate | None = None,
        timeout: float = 30.0,
    ) -> "GitHubApp":
        """
        Build the app client from its long-lived credential.

        Args:
            base_url: Base URI of the GitHub REST API.
            app_id: Numeric GitHub App id, used as the JWT issuer.
            private_key: PEM-encoded RSA private key of the app.
            template: Check run template used by installation clients.
            timeout: Total timeout for each upstream request, in seconds.

        Raises:
            InvalidCredentialError: If the key cannot be parsed or the base URI is malformed.
        """
        parsed = urlparse(base_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidCredentialError(f"Provided base uri is invalid: {base_url!r}")

        if not isinstance(app_id, int) or isinstance(app_id, bool) or app_id <= 0:
            raise InvalidCredentialError("Application identifier must be a positive integer")

        try:
            key = serialization.load_pem_private_key((private_key or "").encode("utf-8"), password=None)
        except (ValueError, TypeError) as e:
            raise InvalidCredentialError("Invalid RSA key") from e
        if not isinstance(key, rsa.RSAPrivateKey):
            raise InvalidCredentialError("Invalid RSA key: expected an RSA private key")

        credential = AppCredential(app_id=app_id, private_key=private_key, base_url=base_url.rstrip("/"))
        logger.info("github_app_authenticated", app_id=app_id, base_url=credential.base_url)
        return cls(credential, key, template=template, timeout=timeout)

    def generate_jwt(self) -> str:
        """Generates a JSON Web Token (JWT) to authenticate as the GitHub App."""
        now = int(time.time())
        payload = {
            "iat": now - JWT_BACKDATE_SECONDS,
            "exp": now + JWT_LIFETIME_SECONDS,
            "iss": str(self.credential.app_id),
        }
        return jwt.encode(payload, self._signing_key, algorithm="RS256")

    async def _get_session(self) -> aiohttp.ClientSession:
        """Initializes and returns the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        """Closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def exchange_token(self, installation_id: int) -> InstallationToken:
        """
        Exchange a freshly minted app JWT for an installation access token.

        Raises:
            InstallationExchangeError: On transport errors or any response other than 201.
        """
        headers = {
            "Authorization": f"Bearer {self.generate_jwt()}",
            "Accept": GITHUB_ACCEPT,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        url = f"{self.credential.base_url}/app/installations/{installation_id}/access_tokens"

        session = await self._get_session()
        async with log_operation("installation_token_exchange", installation_id=installation_id):
            try:
                async with session.post(
                    url, headers=headers, timeout=aiohttp.ClientTimeout(total=self._timeout)
                ) as response:
                    if response.status != 201:
                        error_text = await response.text()
                        logger.error(
                            "installation_token_rejected",
                            installation_id=installation_id,
                            status=response.status,
                            response=error_text[:500],
                        )
                        raise InstallationExchangeError(installation_id, f"unexpected status {response.status}")
                    data = await response.json()
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise InstallationExchangeError(installation_id, f"{type(e).__name__}: {e}") from e
            except ValueError as e:
                raise InstallationExchangeError(installation_id, "malformed token response") from e

            try:
                return InstallationToken(token=data["token"], expires_at=_parse_expiry(data.get("expires_at")))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise InstallationExchangeError(installation_id, "malformed token response") from e

    async def client_for_token(self, installation_id: int, token: InstallationToken) -> InstallationClient:
        """Wrap an installation token in a client bound to it."""
        return InstallationClient(
            installation_id=installation_id,
            token=token,
            base_url=self.credential.base_url,
            session=await self._get_session(),
            template=self._template,
            timeout=self._timeout,
        )

    async def for_installation(self, installation_id: int) -> InstallationClient:
        token = await self.exchange_token(installation_id)
        return await self.client_for_token(installation_id, token)


def _parse_expiry(value: str | None) -> datetime:
    """
    Parse GitHub's ``expires_at`` timestamp.

    A missing value is treated as already expired so the token is never cached.
    """
    if not value:
        return datetime.now(UTC)
    expires_at = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=UTC)
    return expires_at
