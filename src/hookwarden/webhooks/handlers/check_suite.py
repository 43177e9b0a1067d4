import structlog

from hookwarden.core.errors import MissingRepositoryError
from hookwarden.core.models import WebhookEvent
from hookwarden.webhooks.models import CheckSuitePayload

logger = structlog.get_logger(__name__)


def handle_check_suite(event: WebhookEvent) -> None:
    """
    Acknowledge a check suite event.

    No reaction is defined for check suites yet. The repository is still
    required so the event is validated the same way as pull requests.
    """
    if event.repository is None:
        raise MissingRepositoryError()

    payload: CheckSuitePayload = event.payload
    logger.debug(
        "check_suite_received",
        repository=event.repo_full_name,
        action=payload.action,
        check_suite_id=payload.check_suite.get("id"),
    )
