import logging
import time
import uuid
from typing import Final

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from spamsift.api import metrics

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER: Final[str] = "x-request-id"


def route_template(request: Request) -> str:
    """The matched route path ("/predict"), or the raw path when nothing matched."""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an id, enforce the body size limit, and record
    one metrics sample and one log line when the response is ready.

    The id is taken from `x-request-id` when the caller sends one, exposed
    to handlers as `request.state.request_id`, and echoed on the response.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        manager: metrics.MetricsManager = request.app.state.metrics_manager
        max_bytes: int = request.app.state.settings.MAX_PAYLOAD_BYTES

        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()

        declared_size = int(request.headers.get("content-length") or 0)
        manager.payload_size.observe(declared_size)

        if declared_size > max_bytes:
            response = Response(status_code=413, content="Payload too large.")
        else:
            response = await call_next(request)

        elapsed = time.perf_counter() - started
        route = route_template(request)

        manager.request_time.labels(route=route, method=request.method).observe(elapsed)
        manager.requests.labels(
            route=route, method=request.method, status=str(response.status_code)
        ).inc()

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "handled request",
            extra={
                "request_id": request_id,
                "method": request.method,
                "route": route,
                "status": response.status_code,
                "duration_ms": round(elapsed * 1000, 2),
            },
        )
        return response
