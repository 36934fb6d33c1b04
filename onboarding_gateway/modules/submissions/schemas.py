"""Form submission envelope and the records mapped out of it."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FileRef(BaseModel):
    """A file uploaded through the form, hosted by the forms provider."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    url: str
    name: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")
    size: int | None = None
    id: str | None = None


class FormField(BaseModel):
    """One answered question. ``label`` and ``type`` from the provider are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    key: str
    value: Any = None


class SubmissionData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    fields: list[FormField]


class Submission(BaseModel):
    """Webhook envelope as posted by the forms provider."""

    model_config = ConfigDict(extra="ignore")

    data: SubmissionData


# ── Mapped records ────────────────────────────────────────────────────────────


class OrganizationRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)

    # Static defaults; mcc 8398 is charitable and social service organizations
    type: str = "non_profit"
    mcc: str = "8398"
    country: str = "FR"

    name: str | None = None
    address_street: str | None = None
    city: str | None = None
    postal_code: str | None = None
    siret: str | None = None
    phone: str | None = None
    vat_id: str | None = None
    description: str | None = None
    website: str | None = None
    iban: str | None = None

    # Only forwarded to Bubble
    logo: list[FileRef] = Field(default_factory=list)
    tagline: str | None = None
    project_picture: list[FileRef] = Field(default_factory=list)
    project_picture_credits: str | None = None
    project_tagline: str | None = None
    donation_purpose: str | None = None


class PersonRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)

    title: str = "Directeur"
    country: str = "FR"

    first_name: str | None = None
    last_name: str | None = None
    address_street: str | None = None
    city: str | None = None
    postal_code: str | None = None
    phone: str | None = None
    email: str | None = None
    dob: str | None = None
    id_file: list[FileRef] = Field(default_factory=list)

    dob_year: str | None = None
    dob_month: str | None = None
    dob_day: str | None = None
