from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# Use JSONB on Postgres while keeping sqlite usable for local runs and tests.
JsonType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    pass


class Tenant(Base):
    __tablename__ = "tenants"

    # Opaque identifier embedded in the tenant's reporting URL; never reissued.
    id: Mapped[str] = mapped_column(String, primary_key=True)
    display_name: Mapped[str] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Violation(Base):
    __tablename__ = "violations"
    __table_args__ = (
        Index("ix_violations_tenant_observed_at", "tenant_id", "observed_at"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    # Checked against tenants at write time rather than through a foreign key.
    tenant_id: Mapped[str] = mapped_column(String, index=True)
    # Grouping columns are always populated, with sentinels when the report lacked them.
    document_uri: Mapped[str] = mapped_column(Text)
    violated_directive: Mapped[str] = mapped_column(Text)
    blocked_uri: Mapped[str] = mapped_column(Text)
    source_file: Mapped[str | None] = mapped_column(Text, nullable=True)
    line_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    column_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    effective_directive: Mapped[str | None] = mapped_column(Text, nullable=True)
    original_report: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Unrecognized report keys kept verbatim for investigation.
    extra_json: Mapped[dict[str, Any] | None] = mapped_column(JsonType, nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    source_ip: Mapped[str | None] = mapped_column(String, nullable=True)
    observed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
