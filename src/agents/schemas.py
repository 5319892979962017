"""Pydantic schemas for call transcripts and extracted customer records."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Speaker = Literal["caller", "agent"]


class Utterance(BaseModel):
    """One recognized line of the call, in arrival order."""

    speaker: Speaker
    text: str


class CustomerDetails(BaseModel):
    """Customer record extracted from a finished call transcript."""

    customerName: str
    customerAvailability: str = Field(description="ISO 8601 date-like string.")
    specialNotes: str


CUSTOMER_DETAILS_JSON_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "customerName": {"type": "string"},
        "customerAvailability": {"type": "string"},
        "specialNotes": {"type": "string"},
    },
    "required": ["customerName", "customerAvailability", "specialNotes"],
}
