"""Stripe onboarding API router."""

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from onboarding_gateway.core.config import settings
from onboarding_gateway.core.errors import ErrorResponse
from onboarding_gateway.core.http import get_http_client
from onboarding_gateway.modules.onboarding.schemas import OnboardingResponse
from onboarding_gateway.modules.onboarding.service import OnboardingSequencer
from onboarding_gateway.modules.onboarding.stripe_client import StripeConnectClient
from onboarding_gateway.modules.submissions.mapper import FieldMapper, default_mapper
from onboarding_gateway.modules.submissions.schemas import Submission

logger = structlog.get_logger()
router = APIRouter(tags=["onboarding"])


def get_stripe_client(
    http: httpx.AsyncClient = Depends(get_http_client),
) -> StripeConnectClient:
    return StripeConnectClient(
        http,
        public_key=settings.STRIPE_PUBLIC_KEY,
        secret_key=settings.STRIPE_SECRET_KEY,
        api_base_url=settings.STRIPE_API_BASE_URL,
        files_base_url=settings.STRIPE_FILES_BASE_URL,
    )


def get_sequencer(
    client: StripeConnectClient = Depends(get_stripe_client),
) -> OnboardingSequencer:
    return OnboardingSequencer(
        client,
        update_account_with_country=settings.STRIPE_UPDATE_ACCOUNT_SEND_COUNTRY,
    )


@router.post(
    "/submit-to-stripe",
    response_model=OnboardingResponse,
    responses={500: {"model": ErrorResponse}},
)
async def submit_to_stripe(
    submission: Submission,
    mapper: FieldMapper = Depends(default_mapper),
    sequencer: OnboardingSequencer = Depends(get_sequencer),
) -> OnboardingResponse:
    """Create and fully configure a Stripe Connect account from a form submission."""
    logger.info("submission.received", route="stripe", fields=len(submission.data.fields))

    org, person = mapper.map(submission.data.fields)
    result = await sequencer.onboard(org, person)

    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "onboarding_failed",
                "message": result.error or "Stripe onboarding failed.",
                "detail": {
                    "failed_step": result.failed_step.value if result.failed_step else None,
                    "error_kind": result.error_kind.value if result.error_kind else None,
                    "account_id": result.account_id,
                    "completed_steps": [s.value for s in result.completed_steps],
                },
            },
        )

    return OnboardingResponse(message=result.message, account_id=result.account_id)
