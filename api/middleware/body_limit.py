"""Request body size limit middleware."""
import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from api.errors import fastapi_error

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared Content-Length exceeds max_size.

    Chunked uploads carry no Content-Length; the save route checks the
    actual body size as well.
    """

    def __init__(self, app, max_size: int = 100 * 1024 * 1024):  # 100MB default
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next) -> Response:
        content_length = request.headers.get("content-length")

        if content_length:
            try:
                declared = int(content_length)
            except ValueError:
                return fastapi_error("VAL_001", "Invalid Content-Length header", http_status=400)

            if declared > self.max_size:
                logger.warning(f"Rejected {request.url.path}: body of {declared} bytes exceeds {self.max_size}")
                return fastapi_error(
                    "VAL_005",
                    f"Request body too large. Maximum size is {self.max_size} bytes",
                    http_status=413,
                )

        return await call_next(request)
