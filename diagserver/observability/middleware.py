from __future__ import annotations

import uuid
from time import perf_counter
from typing import Any, Callable

import structlog
from starlette.datastructures import MutableHeaders

from diagserver.observability.metrics import HttpMetrics


class MetricsMiddleware:
    """Observes every HTTP exchange of the wrapped app into ``HttpMetrics``.

    The response size is the sum of the body chunks actually sent. Each request
    also gets an ``X-Request-ID`` and one ``http_request`` access log event.
    """

    def __init__(self, app: Callable[..., Any], metrics: HttpMetrics) -> None:
        self.app = app
        self.metrics = metrics

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        method = scope.get("method", "GET")
        structlog.contextvars.bind_contextvars(request_id=request_id, path=scope.get("path"), method=method)

        start = perf_counter()
        status_code = 500
        size = 0

        async def observing_send(message: dict[str, Any]) -> None:
            nonlocal status_code, size

            kind = message.get("type")
            if kind == "http.response.start":
                status_code = int(message.get("status", 500))
                MutableHeaders(scope=message)["X-Request-ID"] = request_id
            elif kind == "http.response.body":
                size += len(message.get("body", b""))

            await send(message)

        try:
            await self.app(scope, receive, observing_send)
        finally:
            elapsed_s = perf_counter() - start
            self.metrics.observe(code=status_code, method=method, elapsed_s=elapsed_s, size=size)
            structlog.get_logger("access").info(
                "http_request",
                status_code=status_code,
                elapsed_ms=round(elapsed_s * 1000.0, 2),
                size=size,
            )
            structlog.contextvars.clear_contextvars()
