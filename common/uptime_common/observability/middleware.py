"""
ASGI middleware counting HTTP requests per route.

Usage::

    from uptime_common.observability import MetricsMiddleware, create_counter

    HTTP_REQUESTS = create_counter(
        "http_requests_total", "Total HTTP requests", ["method", "path", "status"]
    )

    app.add_middleware(MetricsMiddleware, counter=HTTP_REQUESTS, ignored_paths={"/metrics"})
"""

from prometheus_client import Counter
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


class MetricsMiddleware(BaseHTTPMiddleware):
    """Increment a ``["method", "path", "status"]`` counter per request.

    Requests that raise inside the app are counted as status 500 before the
    exception propagates to Starlette's error handling.
    """

    def __init__(self, app, counter: Counter, ignored_paths: set[str] | None = None):
        super().__init__(app)
        self.counter = counter
        self.ignored_paths = ignored_paths or set()

    def _count(self, request: Request, status: int) -> None:
        if request.url.path in self.ignored_paths:
            return
        self.counter.labels(
            method=request.method,
            path=request.url.path,
            status=status,
        ).inc()

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
        except Exception:
            self._count(request, 500)
            raise
        self._count(request, response.status_code)
        return response
