"""Bubble registration schemas."""

from typing import Literal

from pydantic import BaseModel


class NotifyResult(BaseModel):
    status: int
    status_text: str
    version: Literal["TEST", "LIVE"]
    record_id: str | None = None
    record_name: str | None = None
    error: str | None = None
