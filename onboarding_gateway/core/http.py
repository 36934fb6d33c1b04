"""Request-scoped outbound HTTP client."""

from collections.abc import AsyncGenerator

import httpx

from onboarding_gateway.core.config import settings


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """One client per inbound request, closed when the request completes."""
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
        yield client
