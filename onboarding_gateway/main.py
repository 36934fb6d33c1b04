"""Onboarding Gateway — form submissions to Stripe Connect and Bubble."""
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException

from onboarding_gateway.core.config import settings
from onboarding_gateway.core.errors import (
    GatewayError,
    gateway_exception_handler,
    global_exception_handler,
    http_exception_handler,
)
from onboarding_gateway.core.sentry import init_sentry
from onboarding_gateway.modules.bubble.router import router as bubble_router
from onboarding_gateway.modules.onboarding.router import router as onboarding_router

# ── Sentry: must be initialised BEFORE the FastAPI app is created ─────────────
init_sentry(settings.SENTRY_DSN, settings.SENTRY_ENVIRONMENT, settings.APP_VERSION)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Starting Onboarding Gateway", env=settings.APP_ENV, port=settings.PORT)
    yield
    logger.info("Shutting down Onboarding Gateway")


_is_prod = settings.APP_ENV == "production"

app = FastAPI(
    title="Onboarding Gateway",
    description=(
        "Receives form submissions, onboards the organisation as a Stripe Connect "
        "custom account, and registers it in Bubble."
    ),
    version=settings.APP_VERSION,
    docs_url=None if _is_prod else "/docs",
    redoc_url=None if _is_prod else "/redoc",
    openapi_url=None if _is_prod else "/openapi.json",
    lifespan=lifespan,
)

app.add_exception_handler(GatewayError, gateway_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(onboarding_router)
app.include_router(bubble_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy", "service": "onboarding-gateway", "version": settings.APP_VERSION}
