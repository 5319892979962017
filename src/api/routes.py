"""Service-level routes."""

from __future__ import annotations

from fastapi import APIRouter

from api.schemas import ServiceStatusResponse

router = APIRouter()


@router.get("/", response_model=ServiceStatusResponse)
async def service_status() -> ServiceStatusResponse:
    return ServiceStatusResponse()
