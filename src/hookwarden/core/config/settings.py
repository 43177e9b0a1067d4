"""
Main configuration class that composes all configs.
"""

import base64
import binascii
import os

from dotenv import load_dotenv

from hookwarden.core.config.cache_config import TokenCacheConfig
from hookwarden.core.config.check_run_config import CheckRunConfig
from hookwarden.core.config.github_config import GitHubConfig
from hookwarden.core.config.logging_config import LoggingConfig
from hookwarden.core.config.server_config import InternalEndpointConfig, WebhookEndpointConfig, parse_addr
from hookwarden.core.errors import ConfigurationError

# Load environment variables from a .env file
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


def _env(name: str, default: str | None = None) -> str | None:
    """Read an environment variable, matching its name case-insensitively."""
    if name in os.environ:
        return os.environ[name]
    lowered = name.lower()
    for key, value in os.environ.items():
        if key.lower() == lowered:
            return value
    return default


def _decode_private_key(raw: str) -> str:
    """
    Normalise the private key from the environment.

    Accepts a literal PEM (with real or ``\\n``-escaped newlines) or a
    base64-encoded PEM.
    """
    value = raw.strip()
    if "-----BEGIN" in value:
        return value.replace("\\n", "\n")
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        # Left as-is; the app authenticator rejects it with a proper error
        return value


class Config:
    """Main configuration class."""

    def __init__(self) -> None:
        self._errors: list[str] = []

        app_id = self._int("GITHUB_APP_IDENTIFIER", required=True)
        private_key = _env("GITHUB_PRIVATE_KEY", "") or ""
        webhook_secret = _env("GITHUB_WEBHOOK_SECRET", "") or ""
        github_uri = (_env("GITHUB_URI", "") or "").strip()

        if not private_key:
            self._errors.append("GITHUB_PRIVATE_KEY is required")
        if not webhook_secret:
            self._errors.append("GITHUB_WEBHOOK_SECRET is required")
        if not github_uri:
            self._errors.append("GITHUB_URI is required")

        self.github = GitHubConfig(
            app_id=app_id or 0,
            private_key=_decode_private_key(private_key) if private_key else "",
            webhook_secret=webhook_secret,
            api_base_url=github_uri.rstrip("/"),
            http_timeout=self._float("GITHUB_HTTP_TIMEOUT", 30.0),
        )

        webhook_host, webhook_port = self._addr("WEBHOOK_ADDR", "0.0.0.0:3000")
        webhook_path = _env("WEBHOOK_ENDPOINT") or "/event_handler"
        if not webhook_path.startswith("/"):
            webhook_path = f"/{webhook_path}"
        self.webhook_endpoint = WebhookEndpointConfig(host=webhook_host, port=webhook_port, path=webhook_path)

        internal_host, internal_port = self._addr("INTERNAL_ADDR", "0.0.0.0:3001")
        self.internal_endpoint = InternalEndpointConfig(host=internal_host, port=internal_port)

        self.token_cache = TokenCacheConfig(
            enabled=(_env("TOKEN_CACHE_ENABLED", "false") or "").strip().lower() in _TRUTHY,
            maxsize=self._int("TOKEN_CACHE_MAXSIZE", default=256) or 256,
            expiry_margin=self._int("TOKEN_CACHE_EXPIRY_MARGIN", default=60) or 0,
        )

        self.check_run = CheckRunConfig(
            name=_env("CHECK_RUN_NAME") or "hookwarden",
            details_url=_env("CHECK_RUN_DETAILS_URL") or None,
            template_path=_env("CHECK_RUN_TEMPLATE_PATH") or None,
        )

        self.logging = LoggingConfig(
            level=(_env("LOG_LEVEL") or "INFO").upper(),
            format=(_env("LOG_FORMAT") or "console").lower(),
        )

    def _int(self, name: str, default: int | None = None, required: bool = False) -> int | None:
        raw = _env(name)
        if raw is None or not raw.strip():
            if required:
                self._errors.append(f"{name} is required")
            return default
        try:
            return int(raw.strip())
        except ValueError:
            self._errors.append(f"{name} must be an integer")
            return default

    def _float(self, name: str, default: float) -> float:
        raw = _env(name)
        if raw is None or not raw.strip():
            return default
        try:
            return float(raw.strip())
        except ValueError:
            self._errors.append(f"{name} must be a number")
            return default

    def _addr(self, name: str, default: str) -> tuple[str, int]:
        raw = _env(name) or default
        try:
            return parse_addr(raw)
        except ValueError as e:
            self._errors.append(f"{name} is invalid: {e}")
            return parse_addr(default)

    def validate(self) -> bool:
        """
        Validate configuration.

        Raises:
            ConfigurationError: Listing every missing or invalid variable.
        """
        if self._errors:
            raise ConfigurationError(list(self._errors))
        return True


def load_config() -> Config:
    """Read and validate the configuration from the environment."""
    config = Config()
    config.validate()
    return config
