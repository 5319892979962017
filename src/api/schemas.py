"""API-facing Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel


class ServiceStatusResponse(BaseModel):
    message: str = "Media Stream Server is running!"
