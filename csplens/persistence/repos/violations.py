from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from csplens.domain.models import Violation
from csplens.domain.reports import NormalizedReport
from csplens.persistence.guards import tenant_predicate


async def add_violation(
    session: AsyncSession,
    *,
    violation_id: str,
    tenant_id: str,
    report: NormalizedReport,
    user_agent: str | None,
    source_ip: str | None,
    observed_at: datetime,
) -> Violation:
    # Violations are append-only; there is no update path.
    violation = Violation(
        id=violation_id,
        tenant_id=tenant_id,
        document_uri=report.document_uri,
        violated_directive=report.violated_directive,
        blocked_uri=report.blocked_uri,
        source_file=report.source_file,
        line_number=report.line_number,
        column_number=report.column_number,
        effective_directive=report.effective_directive,
        original_report=report.original_report,
        extra_json=report.extra or None,
        user_agent=user_agent,
        source_ip=source_ip,
        observed_at=observed_at,
    )
    session.add(violation)
    return violation


async def list_violations(
    session: AsyncSession,
    tenant_id: str,
    *,
    offset: int = 0,
    limit: int = 100,
) -> list[Violation]:
    # Newest first; id breaks ties between records stamped in the same instant.
    stmt = (
        select(Violation)
        .where(tenant_predicate(Violation, tenant_id))
        .order_by(Violation.observed_at.desc(), Violation.id.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_violations(session: AsyncSession, tenant_id: str) -> int:
    result = await session.execute(
        select(func.count()).select_from(Violation).where(tenant_predicate(Violation, tenant_id))
    )
    return int(result.scalar() or 0)


async def window_rows(
    session: AsyncSession,
    tenant_id: str,
    *,
    start: datetime,
    end: datetime,
) -> list[tuple[Any, Any, datetime]]:
    # Single windowed read so every statistic derives from the same row set.
    result = await session.execute(
        select(Violation.violated_directive, Violation.blocked_uri, Violation.observed_at).where(
            tenant_predicate(Violation, tenant_id),
            Violation.observed_at >= start,
            Violation.observed_at <= end,
        )
    )
    return [tuple(row) for row in result.all()]
