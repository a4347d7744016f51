from __future__ import annotations


class CspLensError(Exception):
    """Base error for csplens."""


class TenantNotFoundError(CspLensError):
    """No tenant is registered under the given identifier."""

    def __init__(self, tenant_id: str) -> None:
        super().__init__(f"Tenant not found: {tenant_id}")
        self.tenant_id = tenant_id


class StoreUnavailableError(CspLensError):
    """Violation or tenant store read/write failure."""
