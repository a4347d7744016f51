from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
import logging
import threading
from typing import Any
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from csplens.core.config import get_settings
from csplens.core.errors import StoreUnavailableError
from csplens.domain.models import Violation
from csplens.persistence.repos import violations as violations_repo
from csplens.services.reports import extract_report
from csplens.services.tenants import resolve_tenant


logger = logging.getLogger(__name__)


class ObservedAtClock:
    """UTC wall clock that never goes backwards within one process."""

    def __init__(self) -> None:
        self._last: datetime | None = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        current = datetime.now(timezone.utc)
        with self._lock:
            if self._last is not None and current < self._last:
                current = self._last
            self._last = current
        return current


_clock = ObservedAtClock()


def resolve_source_ip(headers: Mapping[str, str], client_host: str | None) -> str | None:
    # First non-empty wins: trusted proxy header, forwarded-for chain, peer address.
    settings = get_settings()
    lowered = {key.lower(): value for key, value in headers.items()}
    proxy_ip = (lowered.get(settings.trusted_proxy_ip_header.lower()) or "").strip()
    if proxy_ip:
        return proxy_ip
    forwarded = lowered.get(settings.forwarded_for_header.lower()) or ""
    # The left-most forwarded-for hop is the originating client.
    first_hop = forwarded.split(",", 1)[0].strip()
    if first_hop:
        return first_hop
    return client_host or None


async def ingest_report(
    session: AsyncSession,
    *,
    tenant_id: str,
    body: Any,
    parse_failed: bool,
    content_type: str | None,
    user_agent: str | None,
    source_ip: str | None,
) -> Violation:
    """Store one inbound report for a tenant.

    Raises ``TenantNotFoundError`` before anything is written and
    ``StoreUnavailableError`` when the write fails. Failed writes are not
    retried.
    """
    tenant = await resolve_tenant(session, tenant_id)
    report = extract_report(
        body,
        parse_failed=parse_failed,
        content_type=content_type,
        max_chars=get_settings().original_report_max_chars,
    )
    try:
        violation = await violations_repo.add_violation(
            session,
            violation_id=uuid4().hex,
            tenant_id=tenant.id,
            report=report,
            user_agent=user_agent,
            source_ip=source_ip,
            observed_at=_clock.now(),
        )
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("violation_write_failed tenant=%s", tenant.id, exc_info=exc)
        raise StoreUnavailableError("Violation write failed") from exc
    logger.debug(
        "violation_stored tenant=%s directive=%s",
        tenant.id,
        report.violated_directive,
    )
    return violation
