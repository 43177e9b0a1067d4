import asyncio
from abc import ABC, abstractmethod

import aiohttp
import structlog
from pydantic import ValidationError

from hookwarden.core.errors import MissingOwnerError, UpstreamFailureError
from hookwarden.core.models import CheckRunResult, InstallationToken, RepositoryRef
from hookwarden.core.utils.logging import log_operation
from hookwarden.integrations.github.check_runs import CheckRunTemplate

logger = structlog.get_logger(__name__)

GITHUB_ACCEPT = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"


class GitHubApi(ABC):
    """
    The actions the dispatcher may take on behalf of one installation.
    """

    @abstractmethod
    async def create_commit_status(self, repository: RepositoryRef, sha: str) -> CheckRunResult:
        """
        Create a completed check run on ``sha`` in ``repository``.

        Raises:
            MissingOwnerError: If the repository reference has no owner.
            UpstreamFailureError: On transport errors or unexpected responses.
        """
        raise NotImplementedError


class InstallationClient(GitHubApi):
    """
    A client bound to a single installation access token.

    Instances are created per request by ``GitHubApp.for_installation`` and
    must not be shared across installations.
    """

    def __init__(
        self,
        installation_id: int,
        token: InstallationToken,
        base_url: str,
        session: aiohttp.ClientSession,
        template: CheckRunTemplate,
        timeout: float = 30.0,
    ):
        self.installation_id = installation_id
        self._token = token
        self.base_url = base_url.rstrip("/")
        self._session = session
        self._template = template
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def __repr__(self) -> str:
        return f"InstallationClient(installation_id={self.installation_id}, base_url={self.base_url!r})"

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token.token}",
            "Accept": GITHUB_ACCEPT,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    async def create_commit_status(self, repository: RepositoryRef, sha: str) -> CheckRunResult:
        if not repository.owner:
            raise MissingOwnerError(repository.name)

        url = f"{self.base_url}/repos/{repository.owner}/{repository.name}/check-runs"
        data = self._template.to_request(sha)

        async with log_operation(
            "create_check_run",
            installation_id=self.installation_id,
            repository=repository.full_name,
            sha=sha,
        ):
            try:
                async with self._session.post(url, headers=self.headers, json=data, timeout=self._timeout) as response:
                    if response.status != 201:
                        error_text = await response.text()
                        logger.error(
                            "check_run_rejected",
                            repository=repository.full_name,
                            status=response.status,
                            response=error_text[:500],
                        )
                        raise UpstreamFailureError(f"unexpected status {response.status}", status=response.status)
                    body = await response.json()
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise UpstreamFailureError(f"{type(e).__name__}: {e}") from e
            except ValueError as e:
                raise UpstreamFailureError(f"malformed check run response: {e}") from e

            try:
                output = body.get("output") or {}
                result = CheckRunResult(
                    id=body["id"],
                    conclusion=body.get("conclusion"),
                    title=output.get("title"),
                    summary=output.get("summary"),
                    annotations=self._template.output.annotations,
                    html_url=body.get("html_url"),
                )
            except (AttributeError, KeyError, TypeError, ValidationError) as e:
                raise UpstreamFailureError(f"malformed check run response: {e}") from e

        logger.info("check_run_created", repository=repository.full_name, sha=sha, check_run_id=result.id)
        return result
