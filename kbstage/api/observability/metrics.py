from __future__ import annotations

from prometheus_client import Counter, Histogram
from starlette.requests import Request

UNMATCHED_PATH = "<unmatched>"


def route_path(request: Request) -> str:
    """
    Low-cardinality path label: the matched route template
    (e.g. "/api/v1/packages/build"), or UNMATCHED_PATH for 404s.
    """
    route = request.scope.get("route")
    p = getattr(route, "path", None)
    return p if isinstance(p, str) and p else UNMATCHED_PATH


HTTP_REQUESTS_TOTAL = Counter(
    "kbstage_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "kbstage_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
