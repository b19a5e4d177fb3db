"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures middleware, exception handlers, and lifespan events.

Run with: uvicorn --factory mailer.api.main:create_app
"""

import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import State

from mailer.adapters.captcha import HttpxCaptchaTransport
from mailer.adapters.loops import LoopsClient, LoopsContactStore, LoopsMailDispatcher
from mailer.adapters.mail import ConsoleMailDispatcher
from mailer.adapters.memory import InMemoryContactStore
from mailer.api.v1 import router as v1_router
from mailer.config.settings import Settings, get_settings
from mailer.domain.captcha import build_verifier
from mailer.domain.exceptions import SubscriptionError
from mailer.domain.tokens import TokenAuthority

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Mailer API v1 - Newsletter sign-up with double opt-in",
    },
]


def configure_state(state: State, settings: Settings, http_client: httpx.AsyncClient) -> None:
    """
    Build the long-lived collaborators and store them in app state.

    Loops.so adapters are used when LOOPS_SO_SECRET is set, otherwise the
    in-memory contact store and console mail dispatcher.
    """
    state.settings = settings
    state.http_client = http_client
    state.tokens = TokenAuthority(secret=settings.jwt_secret, lifetime=settings.jwt_expiration)
    state.verifier = build_verifier(
        settings.verification_config(),
        HttpxCaptchaTransport(http_client, timeout_seconds=settings.http_timeout_seconds),
    )
    if settings.loops_so_secret:
        loops = LoopsClient(
            http_client, settings.loops_so_secret, timeout_seconds=settings.http_timeout_seconds
        )
        state.contacts = LoopsContactStore(loops)
        state.mailer = LoopsMailDispatcher(loops, settings.loops_confirmation_template_id)
    else:
        logger.warning("LOOPS_SO_SECRET is not set, using in-memory contact store")
        state.contacts = InMemoryContactStore()
        state.mailer = ConsoleMailDispatcher()


async def subscription_error_handler(request: Request, exc: SubscriptionError) -> JSONResponse:
    """Render a SubscriptionError; internal details stay in the server log."""
    path = request.url.path
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, path, exc.reason, exc.details)
    else:
        logger.info("%s %s rejected: %s (%s)", request.method, path, exc.reason, exc.details)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "reason": exc.reason},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Settings are validated here, so missing required configuration aborts
    start-up instead of failing individual requests.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        FastAPI lifespan context manager.

        Manages application startup and shutdown:
        - Creates the shared HTTP client on startup
        - Builds adapters, verifier and token authority
        - Closes the HTTP client on shutdown
        """
        logger.info("Starting application...")
        http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.http_timeout_seconds))
        configure_state(app.state, settings, http_client)
        logger.info(
            "Application startup complete (captcha=%s)", settings.captcha_provider.value
        )

        yield

        logger.info("Shutting down application...")
        await http_client.aclose()
        logger.info("HTTP client closed")

    app = FastAPI(
        title="mailer",
        description="Newsletter sign-up API with bot verification and double opt-in",
        version="0.1.0",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )

    origins = settings.cors_origins
    if "*" in origins:
        logger.warning(
            'CORS_ORIGIN is set to "*". Use CORS_ORIGIN to allow only the domains '
            "that are allowed to create submission forms."
        )
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials="*" not in origins,
            allow_methods=["GET", "POST", "PUT", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "Accept"],
        )

    @app.middleware("http")
    async def no_store(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store"
        return response

    app.add_exception_handler(SubscriptionError, subscription_error_handler)  # type: ignore[arg-type]

    # Include v1 API routes
    app.include_router(v1_router, prefix="/v1")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app
