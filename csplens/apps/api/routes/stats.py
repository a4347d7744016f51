from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from csplens.apps.api.deps import get_db
from csplens.apps.api.errors import not_found_error
from csplens.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from csplens.apps.api.response import SuccessEnvelope, success_response
from csplens.core.errors import TenantNotFoundError
from csplens.services.statistics import compute_stats


router = APIRouter(prefix="/stats", tags=["stats"], responses=DEFAULT_ERROR_RESPONSES)


class KeyCountResponse(BaseModel):
    key: str
    count: int


class DayCountResponse(BaseModel):
    day: str
    count: int


class StatsResponse(BaseModel):
    totalViolations: int
    byDirective: list[KeyCountResponse]
    byUri: list[KeyCountResponse]
    byDay: list[DayCountResponse]


@router.get("/{tenant_id}", response_model=SuccessEnvelope[StatsResponse])
async def get_stats(
    tenant_id: str,
    request: Request,
    days: int | None = Query(default=None, description="Trailing window in days; defaults to 7."),
    db: AsyncSession = Depends(get_db),
) -> dict:
    try:
        stats = await compute_stats(db, tenant_id, window_days=days)
    except TenantNotFoundError:
        raise not_found_error("Tenant not found", code="TENANT_NOT_FOUND")
    return success_response(request=request, data=StatsResponse(**stats.as_payload()))
