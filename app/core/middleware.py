import logging
import time

from starlette import status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from .observability import correlation_context

logger = logging.getLogger("app.requests")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        client_host = request.client.host if request.client else None
        request.state.ip = request.headers.get("x-forwarded-for", client_host)
        with correlation_context(request.headers.get(REQUEST_ID_HEADER)) as correlation_id:
            started = time.perf_counter()
            try:
                response = await call_next(request)
            except Exception:
                logger.exception("Unhandled error on %s %s", request.method, request.url.path)
                response = JSONResponse(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    content={"error": "Internal server error."},
                )
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                "%s %s -> %s (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
            )
            response.headers[REQUEST_ID_HEADER] = correlation_id
            # Every response is readable cross-origin, with or without an Origin header.
            response.headers.setdefault("Access-Control-Allow-Origin", "*")
            return response
