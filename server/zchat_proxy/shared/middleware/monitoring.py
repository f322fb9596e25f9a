"""
Request monitoring middleware for observability.
"""
from fastapi import FastAPI, Request, Response
import re
import time
import uuid
from loguru import logger
from typing import Callable

from prometheus_client import Counter, Histogram, Gauge


# Request metrics
http_requests_total = Counter(
    'zchat_proxy_http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'zchat_proxy_http_request_duration_seconds',
    'HTTP request duration in seconds (time to first byte for streams)',
    ['method', 'endpoint'],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

active_requests = Gauge(
    'zchat_proxy_active_requests',
    'Number of active requests'
)

# Upstream metrics
upstream_requests_total = Counter(
    'zchat_proxy_upstream_requests_total',
    'Total chat requests sent upstream',
    ['model', 'status']
)

upstream_request_duration_seconds = Histogram(
    'zchat_proxy_upstream_request_duration_seconds',
    'Upstream chat duration in seconds, including streaming',
    ['model']
)


def add_monitoring_middleware(app: FastAPI):
    """
    Add monitoring middleware to FastAPI app.
    Tracks metrics, logs requests, and adds request IDs for tracing.
    """

    @app.middleware("http")
    async def monitoring_middleware(request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        active_requests.inc()
        endpoint = normalize_endpoint(request.url.path)

        log_context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client_host": request.client.host if request.client else "unknown",
        }

        with logger.contextualize(**log_context):
            logger.info(f"Request started: {request.method} {request.url.path}")

            try:
                response = await call_next(request)
                duration = time.time() - start_time

                http_requests_total.labels(
                    method=request.method,
                    endpoint=endpoint,
                    status=response.status_code
                ).inc()
                http_request_duration_seconds.labels(
                    method=request.method,
                    endpoint=endpoint
                ).observe(duration)

                response.headers["X-Request-ID"] = request_id
                response.headers["X-Response-Time"] = f"{duration:.3f}"

                logger.info(f"Request completed: {request.method} {request.url.path} -> {response.status_code} in {duration:.3f}s")
                return response

            except Exception as e:
                http_requests_total.labels(
                    method=request.method,
                    endpoint=endpoint,
                    status=500
                ).inc()
                logger.error(f"Request failed: {request.method} {request.url.path}: {type(e).__name__}: {e}")
                raise

            finally:
                active_requests.dec()


def normalize_endpoint(path: str) -> str:
    """
    Normalize endpoint path for metrics by replacing path parameters.
    This prevents metric cardinality explosion.
    """
    path = re.sub(r'/[a-f0-9\-]{36}', '/{id}', path)
    path = re.sub(r'/\d+', '/{id}', path)
    return path


def record_upstream_request(model: str, duration: float, success: bool):
    """Record metrics for one upstream chat call."""
    status = "success" if success else "error"
    upstream_requests_total.labels(model=model, status=status).inc()

    if duration > 0:
        upstream_request_duration_seconds.labels(model=model).observe(duration)
