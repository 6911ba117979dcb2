"""FastAPI application entrypoint.

Provides the main FastAPI app with a ``/health`` endpoint, request-ID
middleware and the exception handlers that turn formgate errors into
``400`` responses.
"""

import logging
import time
import uuid

from fastapi import FastAPI, Request, Response

from formgate.core.config import Settings
from formgate.models.schemas import HealthResponse
from formgate.validator import install_exception_handlers

settings = Settings()

logging.getLogger("formgate").setLevel(settings.LOG_LEVEL.upper())

_start_time = time.monotonic()

app = FastAPI(
    title=settings.SERVICE_NAME,
    version=settings.SERVICE_VERSION,
)

install_exception_handlers(app)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next) -> Response:
    """Assign or preserve a unique request ID on every request."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Return service health with name, version, status, and uptime."""
    return HealthResponse(
        service=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        status="healthy",
        uptime_seconds=round(time.monotonic() - _start_time, 2),
    )
