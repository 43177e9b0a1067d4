import structlog

from hookwarden.core.errors import ActionFailedError, ApiError, MissingRepositoryError
from hookwarden.core.models import CheckRunResult, WebhookEvent
from hookwarden.integrations.github.api import GitHubApi
from hookwarden.webhooks.models import PullRequestPayload

logger = structlog.get_logger(__name__)


async def handle_pull_request(api: GitHubApi, event: WebhookEvent) -> CheckRunResult:
    """Create the check run on the pull request's head commit."""
    if event.repository is None:
        raise MissingRepositoryError()

    payload: PullRequestPayload = event.payload
    sha = payload.pull_request.head.sha
    log = logger.bind(repository=event.repo_full_name, sha=sha, action=payload.action)

    try:
        result = await api.create_commit_status(event.repository, sha)
    except ApiError as e:
        log.error("pull_request_action_failed", error=str(e))
        raise ActionFailedError(event.kind) from e

    log.info("pull_request_checked", check_run_id=result.id)
    return result
