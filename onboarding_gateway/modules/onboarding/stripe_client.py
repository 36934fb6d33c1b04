"""Stripe Connect client — one method per onboarding call.

Token endpoints are signed with the publishable key, everything else with the
secret key. Bodies are form-encoded (multipart for file uploads). Each method
returns a StepOutcome instead of raising, so the pipeline can stop at the first
failed call.
"""

from __future__ import annotations

import time
from typing import Any

import httpx
import structlog

from onboarding_gateway.core.errors import ErrorKind
from onboarding_gateway.modules.onboarding.schemas import OnboardingStep, StepOutcome
from onboarding_gateway.modules.submissions.schemas import (
    FileRef,
    OrganizationRecord,
    PersonRecord,
)

logger = structlog.get_logger()

ACCOUNT_TYPE = "custom"
ACCOUNT_COUNTRY = "FR"
PAYOUT_CURRENCY = "EUR"


def _form(fields: dict[str, Any]) -> dict[str, str]:
    """Drop unanswered values; Stripe rejects empty parameters."""
    return {k: str(v) for k, v in fields.items() if v is not None}


def mask_iban(iban: str | None) -> str | None:
    if not iban:
        return iban
    compact = iban.replace(" ", "")
    return f"{compact[:4]}…{compact[-4:]}" if len(compact) > 8 else "…"


class StripeConnectClient:
    """Authenticated Stripe Connect calls over a caller-owned httpx client."""

    name = "stripe"

    def __init__(
        self,
        http: httpx.AsyncClient,
        public_key: str,
        secret_key: str,
        api_base_url: str = "https://api.stripe.com",
        files_base_url: str = "https://files.stripe.com",
    ) -> None:
        self.http = http
        self.public_key = public_key
        self.secret_key = secret_key
        self.api_base_url = api_base_url.rstrip("/")
        self.files_base_url = files_base_url.rstrip("/")

    # ── Steps ─────────────────────────────────────────────────────────────────

    async def create_company_token(self, org: OrganizationRecord) -> StepOutcome:
        data = {
            "account[company][name]": org.name,
            "account[tos_shown_and_accepted]": "true",
            "account[business_type]": org.type,
            "account[company][address][country]": org.country,
            "account[company][address][city]": org.city,
            "account[company][address][postal_code]": org.postal_code,
            "account[company][address][line1]": org.address_street,
            "account[company][phone]": org.phone,
            "account[company][tax_id]": org.siret,
            "account[company][vat_id]": org.vat_id,
        }
        return await self._post(
            OnboardingStep.TOKENIZE_COMPANY, "/v1/tokens", self.public_key, data=_form(data)
        )

    async def create_custom_account(self, token_id: str, org: OrganizationRecord) -> StepOutcome:
        data = {
            "account_token": token_id,
            "type": ACCOUNT_TYPE,
            "country": ACCOUNT_COUNTRY,
            "capabilities[card_payments][requested]": "true",
            "capabilities[transfers][requested]": "true",
            "business_profile[mcc]": org.mcc,
            "business_profile[product_description]": org.description,
            "business_profile[url]": org.website,
            "settings[payouts][schedule][interval]": "manual",
        }
        outcome = await self._post(
            OnboardingStep.CREATE_ACCOUNT, "/v1/accounts", self.secret_key, data=_form(data)
        )
        if outcome.ok:
            account = outcome.payload
            logger.info(
                "stripe.account_created",
                account_id=outcome.resource_id,
                type=account.get("type"),
                country=account.get("country"),
                capabilities=account.get("capabilities"),
                business_profile=account.get("business_profile"),
                payouts_enabled=account.get("payouts_enabled"),
                payouts_schedule=(account.get("settings") or {}).get("payouts", {}).get("schedule"),
            )
        return outcome

    async def create_update_token(self) -> StepOutcome:
        """Token attesting that directors, executives and owners are all provided."""
        data = {
            "account[company][directors_provided]": "true",
            "account[company][executives_provided]": "true",
            "account[company][owners_provided]": "true",
        }
        return await self._post(
            OnboardingStep.GENERATE_UPDATE_TOKEN, "/v1/tokens", self.public_key, data=data
        )

    async def upload_identity_document(self, document: FileRef | None) -> StepOutcome:
        """Download the form's identity document and re-upload it to Stripe Files."""
        step = OnboardingStep.UPLOAD_ID_DOCUMENT
        if document is None:
            return StepOutcome.failure(step, ErrorKind.INPUT, "No identity document was provided.")

        try:
            source = await self.http.get(document.url, follow_redirects=True)
            source.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning("stripe.document_download_failed", status=exc.response.status_code)
            return StepOutcome.failure(
                step,
                ErrorKind.REMOTE_API,
                f"Identity document download failed with status {exc.response.status_code}",
            )
        except httpx.RequestError as exc:
            logger.warning("stripe.document_download_failed", error=str(exc))
            return StepOutcome.failure(
                step, ErrorKind.TRANSPORT, f"Identity document download failed: {exc}"
            )

        files = {
            "file": (
                document.name or "identity_document",
                source.content,
                "application/octet-stream",
            )
        }
        return await self._post(
            step,
            "/v1/files",
            self.secret_key,
            base_url=self.files_base_url,
            data={"purpose": "identity_document"},
            files=files,
        )

    async def add_person(
        self, account_id: str, person: PersonRecord, file_id: str
    ) -> StepOutcome:
        data = {
            "first_name": person.first_name,
            "last_name": person.last_name,
            "relationship[representative]": "true",
            "relationship[executive]": "true",
            "relationship[director]": "true",
            "relationship[title]": person.title,
            "email": person.email,
            "phone": person.phone,
            "dob[day]": person.dob_day,
            "dob[month]": person.dob_month,
            "dob[year]": person.dob_year,
            "address[city]": person.city,
            "address[postal_code]": person.postal_code,
            "address[line1]": person.address_street,
            "verification[document][front]": file_id,
        }
        return await self._post(
            OnboardingStep.ATTACH_PERSON,
            f"/v1/accounts/{account_id}/persons",
            self.secret_key,
            data=_form(data),
        )

    async def update_account(
        self,
        account_id: str,
        org: OrganizationRecord,
        token_id: str,
        include_country: bool = False,
    ) -> StepOutcome:
        data = {
            "account_token": token_id,
            "settings[payments][statement_descriptor]": org.name,
        }
        if include_country:
            data["country"] = org.country
        return await self._post(
            OnboardingStep.UPDATE_ACCOUNT,
            f"/v1/accounts/{account_id}",
            self.secret_key,
            data=_form(data),
        )

    async def add_bank_account(self, account_id: str, iban: str | None, country: str) -> StepOutcome:
        data = {
            "external_account[object]": "bank_account",
            "external_account[country]": country,
            "external_account[currency]": PAYOUT_CURRENCY,
            "external_account[account_number]": iban,
        }
        logger.info("stripe.bank_account_requested", account_id=account_id, iban=mask_iban(iban))
        return await self._post(
            OnboardingStep.ADD_BANK_ACCOUNT,
            f"/v1/accounts/{account_id}/external_accounts",
            self.secret_key,
            data=_form(data),
        )

    # ── Transport ─────────────────────────────────────────────────────────────

    async def _post(
        self,
        step: OnboardingStep,
        endpoint: str,
        api_key: str,
        *,
        base_url: str | None = None,
        data: dict[str, str] | None = None,
        files: dict[str, Any] | None = None,
    ) -> StepOutcome:
        url = f"{base_url or self.api_base_url}/{endpoint.lstrip('/')}"
        headers = {"Authorization": f"Bearer {api_key}"}
        start = time.time()
        try:
            resp = await self.http.post(url, headers=headers, data=data, files=files)
        except httpx.RequestError as exc:
            logger.warning("stripe.transport_error", step=step.value, url=url, error=str(exc))
            return StepOutcome.failure(step, ErrorKind.TRANSPORT, f"Stripe network error: {exc}")

        logger.info(
            "stripe.request",
            step=step.value,
            url=url,
            status=resp.status_code,
            ms=int((time.time() - start) * 1000),
        )
        return self._to_outcome(step, resp)

    @staticmethod
    def _to_outcome(step: OnboardingStep, resp: httpx.Response) -> StepOutcome:
        try:
            payload = resp.json()
        except ValueError:
            return StepOutcome.failure(
                step,
                ErrorKind.REMOTE_API,
                f"Stripe returned a non-JSON response ({resp.status_code})",
            )
        if not isinstance(payload, dict):
            return StepOutcome.failure(step, ErrorKind.REMOTE_API, "Stripe returned an unexpected payload")

        error = payload.get("error")
        if error:
            details = error if isinstance(error, dict) else {"message": str(error)}
            logger.error(
                "stripe.api_error",
                step=step.value,
                status=resp.status_code,
                type=details.get("type"),
                code=details.get("code"),
                param=details.get("param"),
                message=details.get("message"),
            )
            return StepOutcome.failure(
                step,
                ErrorKind.REMOTE_API,
                details.get("message") or f"Stripe {step.value} error",
                payload,
            )

        if not payload.get("id"):
            return StepOutcome.failure(
                step, ErrorKind.REMOTE_API, "Stripe response did not include an id", payload
            )
        return StepOutcome.success(step, payload)
