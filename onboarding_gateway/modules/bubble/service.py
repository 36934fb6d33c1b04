"""Bubble.io Data API client — registers the non-profit once Stripe is set up."""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import Any

import httpx
import structlog

from onboarding_gateway.modules.bubble.schemas import NotifyResult
from onboarding_gateway.modules.submissions.schemas import FileRef, OrganizationRecord

logger = structlog.get_logger()

NON_PROFIT_PATH = "api/1.1/obj/Non-Profit/"
TEST_VERSION_PREFIX = "version-test/"


def _json_list(*items: Any) -> str:
    # Bubble list fields are posted as compact JSON arrays
    return json.dumps(list(items), separators=(",", ":"))


def _first_url(files: list[FileRef]) -> str:
    return files[0].url if files else ""


def non_profit_form(org: OrganizationRecord, stripe_account_id: str) -> dict[str, str]:
    return {
        "stripe_account_id": stripe_account_id,
        "name": org.name or "",
        "project_description_list": _json_list(org.description, ""),
        "donation_purpose_list": _json_list(org.donation_purpose, ""),
        "project_tagline_list": _json_list(org.project_tagline),
        "project_picture_credits": org.project_picture_credits or "",
        "logo": _first_url(org.logo),
        "project_picture": _first_url(org.project_picture),
        "tagline_list": _json_list(org.tagline, ""),
    }


class BubbleClient:
    """Creates Non-Profit records on the test or live Bubble app version."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        test_key: str,
        live_key: str,
    ) -> None:
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.test_key = test_key
        self.live_key = live_key

    def endpoint(self, is_test: bool) -> str:
        prefix = TEST_VERSION_PREFIX if is_test else ""
        return f"{self.base_url}/{prefix}{NON_PROFIT_PATH}"

    def _get_headers(self, is_test: bool) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.test_key if is_test else self.live_key}"}

    async def create_non_profit(
        self, is_test: bool, org: OrganizationRecord, stripe_account_id: str
    ) -> NotifyResult:
        version = "TEST" if is_test else "LIVE"
        url = self.endpoint(is_test)
        logger.info(
            "bubble.create_non_profit",
            version=version,
            account_id=stripe_account_id,
            organization=org.name,
        )

        try:
            resp = await self.http.post(
                url,
                headers=self._get_headers(is_test),
                data=non_profit_form(org, stripe_account_id),
            )
        except httpx.RequestError as exc:
            logger.error("bubble.transport_error", version=version, url=url, error=str(exc))
            return NotifyResult(
                status=HTTPStatus.BAD_GATEWAY.value,
                status_text=HTTPStatus.BAD_GATEWAY.phrase,
                version=version,
                record_name=org.name,
                error=f"Bubble network error: {exc}",
            )

        status_text = resp.reason_phrase or str(resp.status_code)
        if resp.is_error:
            logger.error(
                "bubble.api_error",
                version=version,
                status=resp.status_code,
                body=resp.text[:200],
            )
            return NotifyResult(
                status=resp.status_code,
                status_text=status_text,
                version=version,
                record_name=org.name,
                error=_error_message(resp),
            )

        record_id = _response_id(resp)
        logger.info("bubble.non_profit_created", version=version, record_id=record_id)
        return NotifyResult(
            status=resp.status_code,
            status_text=status_text,
            version=version,
            record_id=record_id,
            record_name=org.name,
        )


def _response_id(resp: httpx.Response) -> str | None:
    try:
        body = resp.json()
    except ValueError:
        return None
    return body.get("id") if isinstance(body, dict) else None


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"Bubble error {resp.status_code}"
    # Data API errors look like {"statusCode": 400, "body": {"status": ..., "message": ...}}
    if isinstance(body, dict):
        inner = body.get("body")
        if isinstance(inner, dict) and inner.get("message"):
            return str(inner["message"])
        if body.get("message"):
            return str(body["message"])
    return f"Bubble error {resp.status_code}"
