from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from kbstage.api.observability.metrics import (
    HTTP_REQUEST_DURATION_SECONDS,
    HTTP_REQUESTS_TOTAL,
    route_path,
)

log = logging.getLogger("kbstage.request")


def _json_log(event: str, **fields):
    msg = {"event": event, **fields}
    log.info("%s", msg)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Request ID + one structured log line per API request.

    Adds:
      request.state.request_id
      response header: X-Request-Id
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = rid

        start = time.time()
        resp = await call_next(request)
        dur_ms = int((time.time() - start) * 1000)

        resp.headers["X-Request-Id"] = rid

        # route template, never the raw URL (scanners would mint a series per 404)
        m = request.method.upper()
        p = request.url.path
        label = route_path(request)
        HTTP_REQUESTS_TOTAL.labels(method=m, path=label, status=str(resp.status_code)).inc()
        HTTP_REQUEST_DURATION_SECONDS.labels(method=m, path=label).observe(dur_ms / 1000.0)

        if p.startswith("/api/"):
            _json_log(
                "request",
                request_id=rid,
                method=request.method,
                path=p,
                status_code=resp.status_code,
                duration_ms=dur_ms,
            )
        return resp
