"""Onboarding pipeline outcomes and HTTP response schemas."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from onboarding_gateway.core.errors import ErrorKind


class OnboardingStep(str, Enum):
    """Stripe Connect onboarding steps, in execution order."""

    TOKENIZE_COMPANY = "tokenize_company"
    CREATE_ACCOUNT = "create_account"
    GENERATE_UPDATE_TOKEN = "generate_update_token"
    UPLOAD_ID_DOCUMENT = "upload_id_document"
    ATTACH_PERSON = "attach_person"
    UPDATE_ACCOUNT = "update_account"
    ADD_BANK_ACCOUNT = "add_bank_account"


class StepOutcome(BaseModel):
    """Tagged result of a single remote call."""

    step: OnboardingStep
    ok: bool
    resource_id: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    error_kind: ErrorKind | None = None
    error: str | None = None

    @classmethod
    def success(cls, step: OnboardingStep, payload: dict[str, Any]) -> StepOutcome:
        return cls(step=step, ok=True, resource_id=payload["id"], payload=payload)

    @classmethod
    def failure(
        cls,
        step: OnboardingStep,
        kind: ErrorKind,
        error: str,
        payload: dict[str, Any] | None = None,
    ) -> StepOutcome:
        return cls(step=step, ok=False, error_kind=kind, error=error, payload=payload or {})


class OnboardingResult(BaseModel):
    success: bool
    account_id: str | None = None
    message: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    failed_step: OnboardingStep | None = None
    completed_steps: list[OnboardingStep] = Field(default_factory=list)


class OnboardingResponse(BaseModel):
    message: str
    account_id: str
