# schedulux/core/middleware.py
"""Custom middleware and exception handlers for request handling"""
import uuid
import time
import logging
from starlette.requests import Request
from starlette.responses import JSONResponse

from schedulux.core.errors import SchedulingError

logger = logging.getLogger(__name__)


async def correlation_id_middleware(request: Request, call_next):
    """Tag every request with a correlation ID, reusing the caller's if present"""
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    request.state.correlation_id = correlation_id

    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


async def request_logging_middleware(request: Request, call_next):
    """Log method, path, status and latency of each request"""
    start_time = time.time()
    response = await call_next(request)
    duration_ms = round((time.time() - start_time) * 1000, 2)

    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms}ms)",
        extra={
            "correlation_id": getattr(request.state, "correlation_id", "unknown"),
            "client": request.client.host if request.client else "unknown",
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        }
    )
    return response


async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    """Map the scheduling error taxonomy onto HTTP responses"""
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    if exc.status_code >= 409:
        logger.warning(f"[{correlation_id}] {exc.error_code}: {exc.reason}")
    else:
        logger.info(f"[{correlation_id}] {exc.error_code}: {exc.reason}")

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
