from typing import assert_never

import structlog

from hookwarden.core.errors import AuthenticationFailedError, AuthError, MissingInstallationError
from hookwarden.core.models import EventType, WebhookEvent
from hookwarden.integrations.github.auth import InstallationAuthenticator
from hookwarden.webhooks.handlers.check_suite import handle_check_suite
from hookwarden.webhooks.handlers.pull_request import handle_pull_request
from hookwarden.webhooks.models import PingPayload

logger = structlog.get_logger(__name__)


class WebhookDispatcher:
    """
    Decides how to react to a decoded webhook event.

    The dispatcher holds no state between events: each call to ``dispatch``
    depends only on the authenticator and the event.
    """

    def __init__(self, authenticator: InstallationAuthenticator):
        self._authenticator = authenticator

    async def dispatch(self, event: WebhookEvent) -> str | None:
        """
        Dispatch one event.

        Returns:
            The text to send back (the zen of a ping), or None when the event
            produces no result payload.

        Raises:
            MissingInstallationError: Non-ping event without an installation.
            AuthenticationFailedError: The installation token exchange failed.
            MissingRepositoryError: Pull request or check suite without a repository.
            ActionFailedError: The GitHub action for the event failed.
        """
        log = logger.bind(
            event_kind=event.kind.value,
            event_name=event.name,
            installation_id=event.installation_id,
            repository=event.repo_full_name or None,
            delivery_id=event.delivery_id,
        )

        if event.kind is EventType.PING:
            payload: PingPayload = event.payload
            log.info("ping_received", hook_id=payload.hook_id)
            return payload.zen

        if event.installation is None:
            raise MissingInstallationError()

        try:
            api = await self._authenticator.for_installation(event.installation.id)
        except AuthError as e:
            log.error("installation_authentication_failed", error=str(e))
            raise AuthenticationFailedError(event.installation.id) from e

        match event.kind:
            case EventType.PULL_REQUEST:
                await handle_pull_request(api, event)
            case EventType.PUSH | EventType.CHECK_RUN:
                log.debug("event_acknowledged")
            case EventType.CHECK_SUITE:
                handle_check_suite(event)
            case EventType.OTHER:
                log.debug("unhandled_event")
            case EventType.PING:
                # Answered before authentication
                return event.payload.zen
            case _:
                assert_never(event.kind)
        return None


async def handle_event(authenticator: InstallationAuthenticator, event: WebhookEvent) -> str | None:
    """Dispatch ``event`` using ``authenticator`` for installation access."""
    return await WebhookDispatcher(authenticator).dispatch(event)
