from __future__ import annotations

import logging
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from csplens.core.config import get_settings
from csplens.core.errors import StoreUnavailableError, TenantNotFoundError
from csplens.domain.models import Tenant
from csplens.persistence.repos import tenants as tenants_repo


logger = logging.getLogger(__name__)


async def resolve_tenant(session: AsyncSession, tenant_id: str) -> Tenant:
    # Existence check only; reporting endpoints carry no other credential.
    try:
        tenant = await tenants_repo.get_tenant(session, tenant_id)
    except SQLAlchemyError as exc:
        logger.error("tenant_lookup_failed tenant=%s", tenant_id, exc_info=exc)
        raise StoreUnavailableError("Tenant lookup failed") from exc
    if tenant is None:
        raise TenantNotFoundError(tenant_id)
    return tenant


async def register_tenant(session: AsyncSession, *, display_name: str) -> Tenant:
    tenant_id = str(uuid4())
    try:
        tenant = await tenants_repo.create_tenant(
            session,
            tenant_id=tenant_id,
            display_name=display_name,
        )
        await session.commit()
        await session.refresh(tenant)
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("tenant_create_failed", exc_info=exc)
        raise StoreUnavailableError("Tenant creation failed") from exc
    logger.info("tenant_created tenant=%s", tenant.id)
    return tenant


def reporting_url(tenant_id: str) -> str:
    base = get_settings().public_base_url.rstrip("/")
    return f"{base}/csp-report/{tenant_id}"
