from __future__ import annotations

import os
import tempfile

# Point the engine at a throwaway sqlite file before any csplens module builds it.
os.environ["DATABASE_URL"] = os.environ.get(
    "CSPLENS_TEST_DATABASE_URL",
    "sqlite+aiosqlite:///" + os.path.join(tempfile.gettempdir(), f"csplens-test-{os.getpid()}.db"),
)
