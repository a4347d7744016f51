from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from csplens.apps.api.deps import get_db
from csplens.apps.api.errors import not_found_error
from csplens.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from csplens.apps.api.response import SuccessEnvelope, success_response
from csplens.core.config import get_settings
from csplens.core.errors import StoreUnavailableError, TenantNotFoundError
from csplens.domain.models import Violation
from csplens.persistence.repos import violations as violations_repo
from csplens.services.tenants import resolve_tenant


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/violations", tags=["violations"], responses=DEFAULT_ERROR_RESPONSES)


class ViolationResponse(BaseModel):
    id: str
    tenant_id: str
    report: dict[str, Any]
    user_agent: str | None
    source_ip: str | None
    observed_at: str


class Pagination(BaseModel):
    total: int
    limit: int
    skip: int


class ViolationPage(BaseModel):
    violations: list[ViolationResponse]
    pagination: Pagination


def _report_payload(violation: Violation) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "documentUri": violation.document_uri,
        "violatedDirective": violation.violated_directive,
        "blockedUri": violation.blocked_uri,
    }
    optional = {
        "sourceFile": violation.source_file,
        "lineNumber": violation.line_number,
        "columnNumber": violation.column_number,
        "effectiveDirective": violation.effective_directive,
        "originalReport": violation.original_report,
        "extra": violation.extra_json,
    }
    payload.update({key: value for key, value in optional.items() if value is not None})
    return payload


def _to_response(violation: Violation) -> ViolationResponse:
    return ViolationResponse(
        id=violation.id,
        tenant_id=violation.tenant_id,
        report=_report_payload(violation),
        user_agent=violation.user_agent,
        source_ip=violation.source_ip,
        observed_at=violation.observed_at.isoformat(),
    )


@router.get("/{tenant_id}", response_model=SuccessEnvelope[ViolationPage])
async def list_violations(
    tenant_id: str,
    request: Request,
    limit: int | None = Query(default=None),
    skip: int = Query(default=0),
    db: AsyncSession = Depends(get_db),
) -> dict:
    settings = get_settings()
    # Clamp paging inputs instead of rejecting them.
    effective_limit = settings.violations_page_default_limit if limit is None else limit
    effective_limit = min(max(1, effective_limit), settings.violations_page_max_limit)
    effective_skip = max(0, skip)
    try:
        tenant = await resolve_tenant(db, tenant_id)
    except TenantNotFoundError:
        raise not_found_error("Tenant not found", code="TENANT_NOT_FOUND")
    try:
        rows = await violations_repo.list_violations(
            db, tenant.id, offset=effective_skip, limit=effective_limit
        )
        total = await violations_repo.count_violations(db, tenant.id)
    except SQLAlchemyError as exc:
        logger.error("violations_list_failed tenant=%s", tenant.id, exc_info=exc)
        raise StoreUnavailableError("Violation listing failed") from exc
    page = ViolationPage(
        violations=[_to_response(row) for row in rows],
        pagination=Pagination(total=total, limit=effective_limit, skip=effective_skip),
    )
    return success_response(request=request, data=page)
