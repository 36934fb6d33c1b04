"""Onboarding sequencer — the Stripe Connect account setup pipeline.

Steps run in a fixed order and each one only runs when every previous step
returned an id:

    tokenize_company → create_account → generate_update_token
    → upload_id_document → attach_person → update_account → add_bank_account

The update token must exist before update_account consumes it, and the
identity document must be uploaded before the person referencing it is
attached. Nothing is retried and nothing is rolled back: a failure after
create_account leaves the new account in Stripe, and the failed result carries
its id so it can be finished or removed by hand.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog

from onboarding_gateway.core.errors import ErrorKind
from onboarding_gateway.modules.onboarding.schemas import (
    OnboardingResult,
    OnboardingStep,
    StepOutcome,
)
from onboarding_gateway.modules.onboarding.stripe_client import StripeConnectClient
from onboarding_gateway.modules.submissions.schemas import OrganizationRecord, PersonRecord

logger = structlog.get_logger()

SUCCESS_MESSAGE = "All steps completed successfully."


class _Run:
    """Outputs of the steps completed so far for one submission."""

    def __init__(self, org: OrganizationRecord, person: PersonRecord) -> None:
        self.org = org
        self.person = person
        self.outcomes: dict[OnboardingStep, StepOutcome] = {}

    def id_of(self, step: OnboardingStep) -> str:
        return self.outcomes[step].resource_id  # type: ignore[return-value]

    @property
    def account_id(self) -> str | None:
        outcome = self.outcomes.get(OnboardingStep.CREATE_ACCOUNT)
        return outcome.resource_id if outcome else None

    @property
    def completed(self) -> list[OnboardingStep]:
        return list(self.outcomes)


StepRunner = Callable[[_Run], Awaitable[StepOutcome]]


class OnboardingSequencer:
    def __init__(
        self,
        client: StripeConnectClient,
        update_account_with_country: bool = False,
    ) -> None:
        self.client = client
        self.update_account_with_country = update_account_with_country
        self.pipeline: tuple[tuple[OnboardingStep, StepRunner], ...] = (
            (OnboardingStep.TOKENIZE_COMPANY, self._tokenize_company),
            (OnboardingStep.CREATE_ACCOUNT, self._create_account),
            (OnboardingStep.GENERATE_UPDATE_TOKEN, self._generate_update_token),
            (OnboardingStep.UPLOAD_ID_DOCUMENT, self._upload_id_document),
            (OnboardingStep.ATTACH_PERSON, self._attach_person),
            (OnboardingStep.UPDATE_ACCOUNT, self._update_account),
            (OnboardingStep.ADD_BANK_ACCOUNT, self._add_bank_account),
        )

    async def onboard(self, org: OrganizationRecord, person: PersonRecord) -> OnboardingResult:
        run = _Run(org, person)
        log = logger.bind(organization=org.name)
        log.info("onboarding.started", steps=len(self.pipeline))

        for step, execute in self.pipeline:
            try:
                outcome = await execute(run)
            except Exception as exc:  # noqa: BLE001
                log.exception("onboarding.step_crashed", step=step.value, error=str(exc))
                outcome = StepOutcome.failure(
                    step, ErrorKind.INTERNAL, "Unexpected error during onboarding."
                )

            if not outcome.ok:
                return self._failed(run, outcome, log)

            run.outcomes[step] = outcome
            log.info("onboarding.step_completed", step=step.value, resource_id=outcome.resource_id)

        log.info("onboarding.completed", account_id=run.account_id)
        return OnboardingResult(
            success=True,
            account_id=run.account_id,
            message=SUCCESS_MESSAGE,
            completed_steps=run.completed,
        )

    def _failed(self, run: _Run, outcome: StepOutcome, log) -> OnboardingResult:
        log.error(
            "onboarding.step_failed",
            step=outcome.step.value,
            error_kind=outcome.error_kind.value if outcome.error_kind else None,
            error=outcome.error,
            completed_steps=[s.value for s in run.completed],
        )
        if run.account_id:
            log.warning(
                "onboarding.partial_failure",
                account_id=run.account_id,
                failed_step=outcome.step.value,
            )
        return OnboardingResult(
            success=False,
            account_id=run.account_id,
            error=outcome.error,
            error_kind=outcome.error_kind,
            failed_step=outcome.step,
            completed_steps=run.completed,
        )

    # ── Steps ─────────────────────────────────────────────────────────────────

    async def _tokenize_company(self, run: _Run) -> StepOutcome:
        return await self.client.create_company_token(run.org)

    async def _create_account(self, run: _Run) -> StepOutcome:
        return await self.client.create_custom_account(
            run.id_of(OnboardingStep.TOKENIZE_COMPANY), run.org
        )

    async def _generate_update_token(self, run: _Run) -> StepOutcome:
        return await self.client.create_update_token()

    async def _upload_id_document(self, run: _Run) -> StepOutcome:
        document = run.person.id_file[0] if run.person.id_file else None
        return await self.client.upload_identity_document(document)

    async def _attach_person(self, run: _Run) -> StepOutcome:
        return await self.client.add_person(
            run.account_id, run.person, run.id_of(OnboardingStep.UPLOAD_ID_DOCUMENT)
        )

    async def _update_account(self, run: _Run) -> StepOutcome:
        return await self.client.update_account(
            run.account_id,
            run.org,
            run.id_of(OnboardingStep.GENERATE_UPDATE_TOKEN),
            include_country=self.update_account_with_country,
        )

    async def _add_bank_account(self, run: _Run) -> StepOutcome:
        return await self.client.add_bank_account(run.account_id, run.org.iban, run.org.country)
