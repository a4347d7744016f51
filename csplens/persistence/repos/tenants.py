from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from csplens.domain.models import Tenant


async def get_tenant(session: AsyncSession, tenant_id: str) -> Tenant | None:
    result = await session.execute(select(Tenant).where(Tenant.id == tenant_id))
    return result.scalar_one_or_none()


async def create_tenant(session: AsyncSession, *, tenant_id: str, display_name: str) -> Tenant:
    # Callers own the commit so creation can be grouped with other writes.
    tenant = Tenant(id=tenant_id, display_name=display_name)
    session.add(tenant)
    return tenant
