"""
Installation token cache.

Wraps a ``GitHubApp`` so repeated deliveries for the same installation reuse
its access token until shortly before the platform-declared expiry. Concurrent
misses for one installation share a single exchange.
"""

import asyncio
import time
import weakref
from collections.abc import Callable

import structlog
from cachetools import TLRUCache

from hookwarden.core.models import InstallationToken
from hookwarden.integrations.github.api import InstallationClient
from hookwarden.integrations.github.auth import GitHubApp, InstallationAuthenticator

logger = structlog.get_logger(__name__)


class CachedInstallationAuthenticator(InstallationAuthenticator):
    """
    Installation authenticator with a time-boxed token cache.

    Entries expire ``expiry_margin`` seconds before the token's ``expires_at``;
    a token is never handed out at or past that point.
    """

    def __init__(
        self,
        app: GitHubApp,
        maxsize: int = 256,
        expiry_margin: int = 60,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._app = app
        self._expiry_margin = expiry_margin
        self._tokens: TLRUCache = TLRUCache(maxsize=maxsize, ttu=self._time_to_use, timer=timer)
        # Entries vanish once no request holds or awaits the lock
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()

    def _usable_for(self, token: InstallationToken) -> float:
        """Seconds this token may still be handed out."""
        return token.expires_in() - self._expiry_margin

    def _time_to_use(self, _installation_id: int, token: InstallationToken, now: float) -> float:
        return now + self._usable_for(token)

    def _cached(self, installation_id: int) -> InstallationToken | None:
        token = self._tokens.get(installation_id)
        if token is not None and self._usable_for(token) <= 0:
            self._tokens.pop(installation_id, None)
            return None
        return token

    async def get_token(self, installation_id: int) -> InstallationToken:
        token = self._cached(installation_id)
        if token is not None:
            logger.debug("installation_token_cache_hit", installation_id=installation_id)
            return token

        lock = self._locks.get(installation_id)
        if lock is None:
            lock = self._locks[installation_id] = asyncio.Lock()
        async with lock:
            # Another request may have completed the exchange while we waited
            token = self._cached(installation_id)
            if token is not None:
                return token

            token = await self._app.exchange_token(installation_id)
            if self._usable_for(token) > 0:
                self._tokens[installation_id] = token
            else:
                logger.warning("installation_token_not_cached", installation_id=installation_id)
            return token

    async def for_installation(self, installation_id: int) -> InstallationClient:
        token = await self.get_token(installation_id)
        return await self._app.client_for_token(installation_id, token)

    def invalidate(self, installation_id: int) -> None:
        self._tokens.pop(installation_id, None)

    async def close(self) -> None:
        self._tokens.clear()
        await self._app.close()
