"""Bubble registration API router."""

import httpx
import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from onboarding_gateway.core.config import settings
from onboarding_gateway.core.http import get_http_client
from onboarding_gateway.modules.bubble.schemas import NotifyResult
from onboarding_gateway.modules.bubble.service import BubbleClient
from onboarding_gateway.modules.submissions.mapper import FieldMapper, default_mapper
from onboarding_gateway.modules.submissions.schemas import Submission

logger = structlog.get_logger()
router = APIRouter(tags=["bubble"])


def get_bubble_client(
    http: httpx.AsyncClient = Depends(get_http_client),
) -> BubbleClient:
    return BubbleClient(
        http,
        base_url=settings.BUBBLE_BASE_URL,
        test_key=settings.BUBBLE_TEST_KEY,
        live_key=settings.BUBBLE_LIVE_KEY,
    )


@router.post("/submit-to-bubble/{account_id}", response_model=NotifyResult)
async def submit_to_bubble(
    account_id: str,
    submission: Submission,
    is_test: str = Query("false", alias="isTest"),
    mapper: FieldMapper = Depends(default_mapper),
    client: BubbleClient = Depends(get_bubble_client),
) -> JSONResponse:
    """Register the non-profit in Bubble; the response status mirrors Bubble's."""
    logger.info(
        "submission.received",
        route="bubble",
        account_id=account_id,
        is_test=is_test,
        fields=len(submission.data.fields),
    )

    org = mapper.map_organization(submission.data.fields)
    result = await client.create_non_profit(is_test.lower() == "true", org, account_id)
    return JSONResponse(status_code=result.status, content=result.model_dump(mode="json"))
