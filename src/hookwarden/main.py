import asyncio
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from hookwarden import __version__
from hookwarden.core.config import Config, load_config
from hookwarden.core.errors import AuthError, ConfigurationError
from hookwarden.core.utils.logging import configure_logging
from hookwarden.core.utils.metrics import create_metrics_app, track_metrics
from hookwarden.integrations.github.auth import AppAuthenticatorFactory, GitHubApp, InstallationAuthenticator
from hookwarden.integrations.github.check_runs import load_check_run_template
from hookwarden.integrations.github.token_cache import CachedInstallationAuthenticator
from hookwarden.webhooks.router import create_router

logger = structlog.get_logger(__name__)


def build_authenticator(
    config: Config,
    authenticator_factory: AppAuthenticatorFactory = GitHubApp.authenticate_app,
) -> InstallationAuthenticator:
    """
    Authenticate the app from configuration.

    Raises:
        InvalidCredentialError: If the private key or base URI is invalid.
        ConfigurationError: If the check run template cannot be loaded.
    """
    template = load_check_run_template(config.check_run)
    authenticator = authenticator_factory(
        config.github.api_base_url,
        config.github.app_id,
        config.github.private_key,
        template=template,
        timeout=config.github.http_timeout,
    )
    if config.token_cache.enabled and isinstance(authenticator, GitHubApp):
        logger.info(
            "installation_token_cache_enabled",
            maxsize=config.token_cache.maxsize,
            expiry_margin=config.token_cache.expiry_margin,
        )
        return CachedInstallationAuthenticator(
            authenticator,
            maxsize=config.token_cache.maxsize,
            expiry_margin=config.token_cache.expiry_margin,
        )
    return authenticator


def create_app(
    config: Config,
    authenticator_factory: AppAuthenticatorFactory = GitHubApp.authenticate_app,
) -> FastAPI:
    """
    Build the public application.

    The app is authenticated here, once, so an invalid credential fails at
    startup rather than on the first delivery.
    """
    authenticator = build_authenticator(config, authenticator_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("hookwarden_started", webhook_path=config.webhook_endpoint.path)
        yield
        await app.state.authenticator.close()
        logger.info("hookwarden_stopped")

    app = FastAPI(
        title="hookwarden",
        description="GitHub App webhook receiver.",
        version=__version__,
        lifespan=lifespan,
    )
    # Read-only after startup, shared by every request
    app.state.webhook_secret = config.github.webhook_secret.encode("utf-8")
    app.state.authenticator = authenticator

    app.middleware("http")(track_metrics)
    app.include_router(create_router(config.webhook_endpoint.path), tags=["GitHub Webhooks"])

    @app.get("/", tags=["Health Check"])
    async def read_root() -> dict[str, str]:
        """A simple health check endpoint to confirm the service is running."""
        return {"status": "ok"}

    return app


async def serve(config: Config) -> None:
    """Run the public and the internal listener on one event loop."""
    public = uvicorn.Server(
        uvicorn.Config(
            create_app(config),
            host=config.webhook_endpoint.host,
            port=config.webhook_endpoint.port,
            log_config=None,
        )
    )
    internal = uvicorn.Server(
        uvicorn.Config(
            create_metrics_app(),
            host=config.internal_endpoint.host,
            port=config.internal_endpoint.port,
            log_config=None,
        )
    )
    logger.info(
        "listening",
        webhook_addr=f"{config.webhook_endpoint.host}:{config.webhook_endpoint.port}",
        internal_addr=f"{config.internal_endpoint.host}:{config.internal_endpoint.port}",
    )
    await asyncio.gather(public.serve(), internal.serve())


def main() -> None:
    """Console entry point."""
    try:
        config = load_config()
    except ConfigurationError as e:
        configure_logging()
        logger.error("invalid_configuration", errors=e.errors)
        sys.exit(2)

    configure_logging(config.logging.level, config.logging.format)
    try:
        asyncio.run(serve(config))
    except (AuthError, ConfigurationError) as e:
        logger.error("startup_failed", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
