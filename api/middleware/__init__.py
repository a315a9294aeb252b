"""API Middleware modules."""
from api.middleware.body_limit import BodySizeLimitMiddleware
from api.middleware.request_tracing import RequestIdLogFilter, RequestTracingMiddleware, get_request_id

__all__ = [
    "BodySizeLimitMiddleware",
    "RequestIdLogFilter",
    "RequestTracingMiddleware",
    "get_request_id",
]
