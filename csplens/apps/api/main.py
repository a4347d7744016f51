from __future__ import annotations

import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from csplens.apps.api.errors import (
    http_exception_handler,
    store_unavailable_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from csplens.apps.api.response import API_VERSION
from csplens.apps.api.routes.health import router as health_router
from csplens.apps.api.routes.reports import router as reports_router
from csplens.apps.api.routes.stats import router as stats_router
from csplens.apps.api.routes.tenants import router as tenants_router
from csplens.apps.api.routes.violations import router as violations_router
from csplens.core.config import get_settings
from csplens.core.errors import StoreUnavailableError
from csplens.core.logging import configure_logging


logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    configure_logging()
    settings = get_settings()
    app = FastAPI(title="csplens API", version=API_VERSION)

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):  # type: ignore[override]
        # Preserve incoming request IDs or assign a new one for traceability.
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        request.state.request_id = request_id
        start = time.monotonic()
        response = await call_next(request)
        latency_ms = (time.monotonic() - start) * 1000.0
        logger.debug(
            "request_complete path=%s status=%s latency_ms=%.1f",
            request.url.path,
            response.status_code,
            latency_ms,
        )
        response.headers.setdefault("X-Request-Id", request_id)
        return response

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Reporting URLs are baked into customer CSP headers, so they stay unversioned.
    app.include_router(reports_router)

    app.include_router(health_router, prefix=f"/{API_VERSION}")
    app.include_router(tenants_router, prefix=f"/{API_VERSION}")
    app.include_router(violations_router, prefix=f"/{API_VERSION}")
    app.include_router(stats_router, prefix=f"/{API_VERSION}")

    logger.info("app_created name=%s", settings.app_name)
    return app


app = create_app()
