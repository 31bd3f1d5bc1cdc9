"""FastAPI application entrypoint for the Edira API."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from edira.api.probes import router as probes_router
from edira.core.config import AppSettings
from edira.core.config import get_settings
from edira.core.errors import register_error_handlers
from edira.core.logging import configure_logging
from edira.security.adapters import AccessDeniedHandler
from edira.security.adapters import AuthenticationEntryPoint
from edira.security.middleware import AccessRules
from edira.security.middleware import BasicAuthenticator
from edira.security.middleware import SecurityMiddleware

logger = logging.getLogger(__name__)


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Build the application with error handlers and security wired in."""
    settings = settings or get_settings()

    application = FastAPI(title="Edira API")
    register_error_handlers(application)
    application.add_middleware(
        SecurityMiddleware,
        rules=AccessRules.from_settings(settings),
        authenticator=BasicAuthenticator(settings.accounts),
        entry_point=AuthenticationEntryPoint(),
        access_denied_handler=AccessDeniedHandler(),
    )
    application.include_router(probes_router)

    @application.get("/health")
    def health() -> dict[str, str]:
        """Public health check for service readiness."""
        return {"status": "ok"}

    logger.info("Created Edira API with settings=%s", settings.safe_for_logging())
    return application


_settings = get_settings()
configure_logging(_settings.log_level)
app = create_app(_settings)
