from __future__ import annotations

import pytest

from csplens.persistence.db import create_all, drop_all, engine


@pytest.fixture(autouse=True)
async def fresh_schema() -> None:
    # Rebuild tables per test so stored violation counts never leak across tests.
    await drop_all()
    await create_all()
    yield
    # Dispose the async engine to prevent cross-loop connection reuse between tests.
    await engine.dispose()
