# salon_booking/core/middleware.py
"""Request tracing and access logging"""
import uuid
import time
import logging
from starlette.requests import Request

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# Availability for a whole month should stay well under this
SLOW_REQUEST_MS = 1000


async def correlation_id_middleware(request: Request, call_next):
    """Reuse the caller's correlation id or mint one, and echo it back"""
    correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
    request.state.correlation_id = correlation_id

    response = await call_next(request)
    response.headers[CORRELATION_HEADER] = correlation_id
    return response


async def request_logging_middleware(request: Request, call_next):
    """Log every request with its status and duration"""
    start_time = time.perf_counter()
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    path = request.url.path

    logger.debug(f"[{correlation_id}] {request.method} {path} started")

    try:
        response = await call_next(request)
    except Exception:
        logger.error(f"[{correlation_id}] {request.method} {path} failed", exc_info=True)
        raise

    duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
    message = (
        f"[{correlation_id}] {request.method} {path} -> {response.status_code} "
        f"in {duration_ms}ms"
    )
    if duration_ms > SLOW_REQUEST_MS:
        logger.warning(f"{message} (slow)")
    else:
        logger.info(message)

    return response
