from __future__ import annotations
import time
from typing import Tuple
from fastapi import FastAPI, Request
from core_logging import get_logger, log_stage, bind_request_id, bind_consumer_id
from core_http.headers import X_REQUEST_ID
from core_utils.ids import generate_request_id
import core_metrics

_DEFAULT_SUPPRESS: Tuple[str, ...] = ("/healthz", "/readyz", "/metrics")

def attach_request_logging(
    app: FastAPI,
    *,
    service: str,
    metric_prefix: str,
    suppress_paths: Tuple[str, ...] = _DEFAULT_SUPPRESS,
) -> None:
    """
    Install a uniform request logger middleware with health/metrics filtering.
    Emits:
      - {metric_prefix}_request_seconds (histogram)
      - {metric_prefix}_http_requests_total (counter{method,code})
      - {metric_prefix}_http_5xx_total (counter)
    Adds the ``x-request-id`` response header.
    """
    logger = get_logger(service)

    @app.middleware("http")
    async def _request_logger(request: Request, call_next):
        path = str(request.url.path or "")
        should_log = not any(path.endswith(p) for p in suppress_paths)

        # Preserve incoming request id when provided; generate otherwise.
        req_id = request.headers.get(X_REQUEST_ID) or generate_request_id()
        bind_request_id(req_id)
        bind_consumer_id(None)
        t0 = time.perf_counter()
        if should_log:
            log_stage(logger, "http.server", "request", path=path, method=request.method)

        resp = await call_next(request)
        resp.headers[X_REQUEST_ID] = req_id

        dt = time.perf_counter() - t0
        core_metrics.histogram(f"{metric_prefix}_request_seconds", dt)
        core_metrics.counter(f"{metric_prefix}_http_requests_total", 1, method=request.method, code=str(resp.status_code))
        if str(resp.status_code).startswith("5"):
            core_metrics.counter(f"{metric_prefix}_http_5xx_total", 1)

        if should_log:
            log_stage(
                logger, "http.server", "response",
                path=path, method=request.method,
                status_code=resp.status_code,
                latency_ms=int(dt * 1000.0),
            )
        return resp
