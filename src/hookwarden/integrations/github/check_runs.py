import json
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, Field, ValidationError

from hookwarden.core.config.check_run_config import CheckRunConfig
from hookwarden.core.errors import ConfigurationError
from hookwarden.core.models import AnnotationLevel, CheckRunAnnotation, CheckRunConclusion

logger = structlog.get_logger(__name__)


class CheckRunOutput(BaseModel):
    """Title, summary and annotations rendered on the check run page."""

    title: str
    summary: str
    text: str | None = None
    annotations: list[CheckRunAnnotation] = Field(default_factory=list)


def _default_output() -> CheckRunOutput:
    return CheckRunOutput(
        title="hookwarden",
        summary="This pull request was received and **checked** by hookwarden.",
        text="> [!NOTE]\n> Checks are reported as annotations on the changed files.",
        annotations=[
            CheckRunAnnotation(
                path="README.md",
                start_line=1,
                end_line=1,
                annotation_level=AnnotationLevel.WARNING,
                message="Checked by **hookwarden**.",
                title="hookwarden",
            )
        ],
    )


class CheckRunTemplate(BaseModel):
    """
    Fixed content of the check run created for every pull request head.

    The template is configuration: it is loaded once at startup and rendered
    against a commit SHA for each request.
    """

    name: str = "hookwarden"
    details_url: str | None = None
    external_id: str | None = None
    conclusion: CheckRunConclusion = CheckRunConclusion.SUCCESS
    output: CheckRunOutput = Field(default_factory=_default_output)

    def to_request(self, sha: str) -> dict[str, Any]:
        """Build the body of ``POST /repos/{owner}/{repo}/check-runs``."""
        output = self.output.model_dump(mode="json", exclude_none=True)
        if not output.get("annotations"):
            output.pop("annotations", None)
        data: dict[str, Any] = {
            "name": self.name,
            "head_sha": sha,
            "status": "completed",
            "conclusion": self.conclusion.value,
            "output": output,
        }
        if self.details_url:
            data["details_url"] = self.details_url
        if self.external_id:
            data["external_id"] = self.external_id
        return data


def load_check_run_template(config: CheckRunConfig) -> CheckRunTemplate:
    """
    Build the check run template from configuration.

    When ``template_path`` is set, the JSON file provides the template and the
    configured name and details URL fill in only what the file leaves out.

    Raises:
        ConfigurationError: If the template file cannot be read or is invalid.
    """
    data: dict[str, Any] = {}
    if config.template_path:
        path = Path(config.template_path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError([f"CHECK_RUN_TEMPLATE_PATH could not be read: {e}"]) from e
        if not isinstance(data, dict):
            raise ConfigurationError(["CHECK_RUN_TEMPLATE_PATH must contain a JSON object"])
        logger.info("check_run_template_loaded", path=str(path))

    data.setdefault("name", config.name)
    if config.details_url:
        data.setdefault("details_url", config.details_url)

    try:
        return CheckRunTemplate.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError([f"Invalid check run template: {e.error_count()} error(s)"]) from e
