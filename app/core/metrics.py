import time
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

HTTP_REQUESTS = Counter("http_requests_total", "Total HTTP requests", ["path", "method", "code"])
HTTP_LATENCY = Histogram("http_request_duration_seconds", "Request latency", ["path", "method"])

# outcome: success | invalid | failure | busy | discarded
ESTIMATES = Counter("estimates_total", "Resale estimate attempts", ["outcome"])

class PromMiddleware(BaseHTTPMiddleware):
    """Counts and times every request, labelled by route template."""
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed = time.perf_counter() - start

        # /v1/form/fields/{name} rather than one series per field name
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)

        HTTP_REQUESTS.labels(path=path, method=request.method, code=str(response.status_code)).inc()
        HTTP_LATENCY.labels(path=path, method=request.method).observe(elapsed)
        return response

def record_estimate(outcome: str) -> None:
    ESTIMATES.labels(outcome=outcome).inc()

async def metrics_endpoint(request: Request):
    """Prometheus scrape target."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
