"""Field mapper — turns form answers into organization and person records.

The forms provider identifies each question by an opaque key. Two read-only
tables translate those keys into record attributes; anything else in the
submission is ignored so new questions can be added to the form without
breaking onboarding.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError

from onboarding_gateway.core.errors import InvalidSubmissionError
from onboarding_gateway.modules.submissions.schemas import (
    FormField,
    OrganizationRecord,
    PersonRecord,
)

logger = structlog.get_logger()

ORGANIZATION_KEYS: Mapping[str, str] = MappingProxyType({
    "question_ja2KXR": "name",
    "question_2E52zp": "address_street",
    "question_xXBGEG": "city",
    "question_ZjyxX0": "postal_code",
    "question_QKyGpg": "siret",
    "question_A75kYB": "phone",
    "question_9q5eYG": "vat_id",
    "question_QoR0X7": "description",
    "question_Qo7eZX": "website",
    "question_9N79k5": "iban",
    # Bubble only
    "question_q5GPpG": "logo",
    "question_5Xx8yZ": "tagline",
    "question_9NZlaQ": "project_picture",
    "question_dbdK5d": "project_picture_credits",
    "question_YjapLW": "project_tagline",
    "question_DqzAlN": "donation_purpose",
})

PERSON_KEYS: Mapping[str, str] = MappingProxyType({
    "question_eqPbGq": "first_name",
    "question_WOd46J": "last_name",
    "question_2E52zp": "address_street",
    "question_xXBGEG": "city",
    "question_ZjyxX0": "postal_code",
    "question_A75kYB": "phone",
    "question_aQoW19": "dob",
    "question_b5GaMe": "email",
    "question_685qYe": "id_file",
})

_DOB_ERROR = "Date of birth is missing or invalid."


def split_dob(dob: Any) -> tuple[str, str, str]:
    """Split ``YYYY-MM-DD`` into its year, month and day substrings."""
    if not isinstance(dob, str):
        raise InvalidSubmissionError(_DOB_ERROR)
    parts = dob.strip().split("-")
    if len(parts) != 3 or not all(p.isascii() and p.isdigit() for p in parts):
        raise InvalidSubmissionError(_DOB_ERROR)
    year, month, day = parts
    return year, month, day


class FieldMapper:
    """Maps a submission's fields onto records using fixed key tables."""

    def __init__(
        self,
        organization_keys: Mapping[str, str],
        person_keys: Mapping[str, str],
    ) -> None:
        self.organization_keys = MappingProxyType(dict(organization_keys))
        self.person_keys = MappingProxyType(dict(person_keys))

    def map(self, fields: Iterable[FormField]) -> tuple[OrganizationRecord, PersonRecord]:
        """Build both records. Raises InvalidSubmissionError without a usable dob."""
        fields = list(fields)
        organization = self.map_organization(fields)

        values = self._collect(fields, self.person_keys, "person")
        year, month, day = split_dob(values.get("dob"))
        values.update(dob_year=year, dob_month=month, dob_day=day)
        person = self._build(PersonRecord, values)

        logger.info(
            "submission.mapped",
            fields=len(fields),
            organization=organization.name,
            person_fields=sorted(k for k, v in values.items() if v is not None),
        )
        return organization, person

    def map_organization(self, fields: Iterable[FormField]) -> OrganizationRecord:
        """Build the organization record alone; no date of birth required."""
        values = self._collect(fields, self.organization_keys, "organization")
        return self._build(OrganizationRecord, values)

    @staticmethod
    def _collect(
        fields: Iterable[FormField], table: Mapping[str, str], record: str
    ) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for field in fields:
            attribute = table.get(field.key)
            if attribute is None:
                continue
            # last write wins when a key repeats
            values[attribute] = field.value
            logger.debug("submission.field_mapped", record=record, key=field.key, attribute=attribute)
        return values

    @staticmethod
    def _build(model: type[BaseModel], values: dict[str, Any]) -> Any:
        # None means "unanswered" and must not erase a static default
        values = {k: v for k, v in values.items() if v is not None}
        while True:
            try:
                return model.model_validate(values)
            except ValidationError as exc:
                rejected = {str(err["loc"][0]) for err in exc.errors() if err["loc"]} & values.keys()
                if not rejected:
                    raise InvalidSubmissionError(f"Invalid value for: {model.__name__}") from exc
                # answers of an unexpected shape are skipped; the default stays
                for attribute in sorted(rejected):
                    logger.warning(
                        "submission.value_ignored",
                        record=model.__name__,
                        attribute=attribute,
                        value_type=type(values.pop(attribute)).__name__,
                    )


def default_mapper() -> FieldMapper:
    return FieldMapper(ORGANIZATION_KEYS, PERSON_KEYS)
