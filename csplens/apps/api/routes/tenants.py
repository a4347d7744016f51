from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from csplens.apps.api.deps import get_db
from csplens.apps.api.errors import not_found_error
from csplens.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from csplens.apps.api.response import SuccessEnvelope, success_response
from csplens.core.errors import TenantNotFoundError
from csplens.domain.models import Tenant
from csplens.services.tenants import register_tenant, reporting_url, resolve_tenant


router = APIRouter(prefix="/tenants", tags=["tenants"], responses=DEFAULT_ERROR_RESPONSES)


class TenantCreateRequest(BaseModel):
    display_name: str = Field(min_length=1, max_length=200)

    model_config = {"extra": "forbid", "str_strip_whitespace": True}


class TenantResponse(BaseModel):
    id: str
    display_name: str
    created_at: str | None


class TenantCreatedResponse(TenantResponse):
    reporting_url: str


def _to_response(tenant: Tenant) -> TenantResponse:
    return TenantResponse(
        id=tenant.id,
        display_name=tenant.display_name,
        created_at=tenant.created_at.isoformat() if tenant.created_at else None,
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=SuccessEnvelope[TenantCreatedResponse],
)
async def create_tenant(
    payload: TenantCreateRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> dict:
    tenant = await register_tenant(db, display_name=payload.display_name)
    data = TenantCreatedResponse(
        **_to_response(tenant).model_dump(),
        reporting_url=reporting_url(tenant.id),
    )
    return success_response(request=request, data=data)


@router.get("/{tenant_id}", response_model=SuccessEnvelope[TenantResponse])
async def get_tenant(
    tenant_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> dict:
    try:
        tenant = await resolve_tenant(db, tenant_id)
    except TenantNotFoundError:
        raise not_found_error("Tenant not found", code="TENANT_NOT_FOUND")
    return success_response(request=request, data=_to_response(tenant))
