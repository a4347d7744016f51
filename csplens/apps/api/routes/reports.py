from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from csplens.apps.api.deps import client_host, get_db
from csplens.apps.api.errors import not_found_error
from csplens.apps.api.openapi import REPORT_ERROR_RESPONSES
from csplens.core.errors import TenantNotFoundError
from csplens.services.ingestion import ingest_report, resolve_source_ip
from csplens.services.reports import decode_report_body


logger = logging.getLogger(__name__)

router = APIRouter(tags=["reports"], responses=REPORT_ERROR_RESPONSES)


@router.post(
    "/csp-report/{tenant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def receive_csp_report(
    tenant_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Response:
    # Read the raw body ourselves; browsers send several non-JSON content types.
    content_type = request.headers.get("content-type", "")
    raw = await request.body()
    body, parse_failed = decode_report_body(raw, content_type)
    try:
        await ingest_report(
            db,
            tenant_id=tenant_id,
            body=body,
            parse_failed=parse_failed,
            content_type=content_type,
            user_agent=request.headers.get("user-agent"),
            source_ip=resolve_source_ip(request.headers, client_host(request)),
        )
    except TenantNotFoundError:
        logger.info("csp_report_unknown_tenant tenant=%s", tenant_id)
        raise not_found_error("Invalid reporting endpoint", code="TENANT_NOT_FOUND")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
