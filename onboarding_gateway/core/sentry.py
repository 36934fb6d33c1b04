"""Sentry initialisation for the onboarding gateway.

Submissions carry personal and banking data, and every outbound call is signed
with a Stripe or Bubble key, so events and breadcrumbs are scrubbed before they
leave the process.
"""

import re
from typing import Any

import structlog
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.httpx import HttpxIntegration

logger = structlog.get_logger()

REDACTED = "[REDACTED]"

_SENSITIVE_HEADERS = {"authorization", "cookie", "x-api-key"}
_SECRET_PATTERN = re.compile(r"\b(?:sk|pk|rk)_(?:live|test)_[A-Za-z0-9]+|Bearer\s+\S+")


def _mask_secrets(text: str) -> str:
    return _SECRET_PATTERN.sub(REDACTED, text)


def _scrub_sensitive_data(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any]:
    """Redact auth headers, submission bodies and API keys quoted in error messages."""
    request = event.get("request", {})
    headers = request.get("headers", {})
    for header in list(headers):
        if header.lower() in _SENSITIVE_HEADERS:
            headers[header] = REDACTED
    if request.get("data"):
        request["data"] = REDACTED

    for exception in event.get("exception", {}).get("values", []):
        if isinstance(exception.get("value"), str):
            exception["value"] = _mask_secrets(exception["value"])
    return event


def _scrub_breadcrumb(crumb: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any]:
    """Outbound httpx breadcrumbs keep method, host, path and status only.

    Signed download links for uploaded documents carry their token in the query
    string.
    """
    if crumb.get("category") == "httplib":
        data = crumb.get("data") or {}
        if isinstance(data.get("url"), str):
            data["url"] = data["url"].split("?", 1)[0]
        data.pop("http.query", None)
        data.pop("http.fragment", None)
    if isinstance(crumb.get("message"), str):
        crumb["message"] = _mask_secrets(crumb["message"])
    return crumb


def init_sentry(
    dsn: str | None,
    environment: str = "development",
    release: str | None = None,
) -> None:
    """No-op when dsn is None or empty."""
    if not dsn:
        logger.info("sentry_disabled", reason="SENTRY_DSN not set")
        return

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        traces_sample_rate=0.1 if environment == "production" else 1.0,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            HttpxIntegration(),
        ],
        send_default_pii=False,
        before_send=_scrub_sensitive_data,
        before_breadcrumb=_scrub_breadcrumb,
    )
    logger.info("sentry_initialized", environment=environment, release=release)
