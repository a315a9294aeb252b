"""
Request tracing for the sync API.

Each request is given an id, taken from the client's X-Request-ID header when
it sends one. The id lives in a ContextVar while the request is served, which
follows the request into the threadpool the backup store runs in.
RequestIdLogFilter copies it onto every log record, so the store's
"Writing backup slot" and "Reading latest backup" lines can be matched to the
request that caused them.
"""
import logging
import time
import uuid
from contextvars import ContextVar

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

NO_REQUEST = "-"

_current_request: ContextVar[str] = ContextVar("sync_request_id", default=NO_REQUEST)


def get_request_id() -> str:
    """Id of the request being served, or "-" outside a request."""
    return _current_request.get()


class RequestIdLogFilter(logging.Filter):
    """Sets record.request_id for formats that include %(request_id)s."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """Assign a request id, echo it back, and log one access line per request."""

    def __init__(self, app, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(self.header_name) or uuid.uuid4().hex[:8]
        token = _current_request.set(request_id)
        started = time.perf_counter()

        try:
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    f"{request.method} {request.url.path} failed after {time.perf_counter() - started:.3f}s: {e}"
                )
                raise

            elapsed = time.perf_counter() - started
            response.headers[self.header_name] = request_id
            response.headers["X-Response-Time"] = f"{elapsed:.3f}s"
            logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed:.3f}s")
        finally:
            _current_request.reset(token)

        return response
