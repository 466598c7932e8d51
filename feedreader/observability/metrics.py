import time
from typing import Callable

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.requests import Request
from starlette.responses import Response


REQUEST_COUNTER = Counter(
    "api_requests_total",
    "HTTP requests total",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "api_request_duration_seconds",
    "HTTP request latency",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10),
)

FEED_FETCH_COUNTER = Counter(
    "feed_fetches_total",
    "Remote feed fetches",
    ["outcome"],
)

FEED_DISCOVERY_COUNTER = Counter(
    "feed_discoveries_total",
    "Feed discovery page scans",
    ["outcome"],
)

FEED_FETCH_DURATION = Histogram(
    "feed_fetch_duration_seconds",
    "Remote page and feed fetch time",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10),
)

AUTH_FAILURE_COUNTER = Counter(
    "auth_failures_total",
    "Rejected bearer credentials",
    ["reason"],
)


async def metrics_endpoint(_: Request) -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


async def request_metrics_middleware(request: Request, call_next: Callable):
    start = time.time()
    response = await call_next(request)
    elapsed = time.time() - start
    path = request.url.path
    # avoid high cardinality by collapsing generated ids (fld_..., sub_...)
    if path.count("/") > 2:
        parts = path.split("/")
        parts = [":id" if p.isdigit() or (len(p) > 4 and "_" in p) else p for p in parts]
        path = "/".join(parts)
    REQUEST_COUNTER.labels(request.method, path, str(response.status_code)).inc()
    REQUEST_LATENCY.observe(elapsed)
    return response


def increment_feed_fetch(outcome: str) -> None:
    FEED_FETCH_COUNTER.labels(outcome).inc()


def increment_feed_discovery(outcome: str) -> None:
    FEED_DISCOVERY_COUNTER.labels(outcome).inc()


def increment_auth_failure(reason: str) -> None:
    AUTH_FAILURE_COUNTER.labels(reason).inc()
