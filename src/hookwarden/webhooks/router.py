import structlog
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse

from hookwarden.core.errors import DispatchError, EventDecodeError
from hookwarden.core.utils.metrics import record_event
from hookwarden.integrations.github.auth import InstallationAuthenticator
from hookwarden.webhooks.dispatcher import WebhookDispatcher
from hookwarden.webhooks.models import decode_event
from hookwarden.webhooks.signature import verify_github_signature

logger = structlog.get_logger(__name__)

WEBHOOK_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def get_authenticator(request: Request) -> InstallationAuthenticator:
    """Returns the app-wide installation authenticator built at startup."""
    return request.app.state.authenticator


# A dispatcher per request; it carries no state of its own.
def get_dispatcher(authenticator: InstallationAuthenticator = Depends(get_authenticator)) -> WebhookDispatcher:
    return WebhookDispatcher(authenticator)


async def github_webhook_endpoint(
    request: Request,
    body: bytes = Depends(verify_github_signature),
    dispatcher: WebhookDispatcher = Depends(get_dispatcher),
) -> Response:
    """
    Receives every webhook delivery of the GitHub App.

    - The signature is verified first; failures never reach decoding.
    - The raw body is decoded into a typed event.
    - The dispatcher reacts to the event; its result decides the status code.
    """
    event_name = request.headers.get("X-GitHub-Event")
    delivery_id = request.headers.get("X-GitHub-Delivery")

    try:
        event = decode_event(event_name, body, delivery_id=delivery_id)
    except EventDecodeError as e:
        logger.warning("webhook_decode_failed", event_name=event_name, delivery_id=delivery_id, error=str(e))
        return PlainTextResponse("invalid webhook payload", status_code=400)

    log = logger.bind(
        event_kind=event.kind.value,
        installation_id=event.installation_id,
        repository=event.repo_full_name or None,
        delivery_id=delivery_id,
    )
    log.info("webhook_validated", event_name=event_name)

    try:
        result = await dispatcher.dispatch(event)
    except DispatchError as e:
        log.error("event_handling_failed", error=str(e), error_type=type(e).__name__)
        record_event(event.kind.value, "error")
        return PlainTextResponse(e.public_message, status_code=500)

    record_event(event.kind.value, "ok")
    if result is None:
        return Response(status_code=204)
    return PlainTextResponse(result, status_code=200)


def create_router(path: str = "/event_handler") -> APIRouter:
    """Build the webhook router serving ``path`` for any HTTP method."""
    router = APIRouter()
    router.add_api_route(
        path,
        github_webhook_endpoint,
        methods=WEBHOOK_METHODS,
        summary="Endpoint for all GitHub webhooks",
        response_class=PlainTextResponse,
    )
    return router
