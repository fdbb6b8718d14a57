"""
core_utils.fastapi_bootstrap: one-call FastAPI wiring for image-styles services.

Applies, in order:
  • request logging + request-id propagation (core_logging.request_logging)
  • the canonical error envelope handlers (core_http.errors)
  • the Prometheus scrape endpoint (core_metrics.fastapi)
  • optional CORS, origins taken from an env var

Health endpoints are attached explicitly by each service:
    from core_utils.health import attach_health_routes
    attach_health_routes(app, checks={"liveness": ..., "readiness": ...})

Environment knobs (all optional):
  CORS_ORIGINS           Comma/space separated origins (e.g. "https://x, https://y").
"""
from __future__ import annotations
import os, re
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from core_http.errors import attach_standard_error_handlers
from core_logging.request_logging import attach_request_logging
from core_metrics.fastapi import attach_prometheus_endpoint


def _parse_origins(s: str | None) -> list[str]:
    if not s:
        return []
    # split on comma or whitespace
    return [p.strip() for p in re.split(r"[\s,]+", s) if p.strip()]


def setup_service(
    app: FastAPI,
    service_name: str,
    *,
    metric_prefix: str | None = None,
    enable_cors_env: str = "CORS_ORIGINS",
    attach_metrics_endpoint: bool = True,
) -> None:
    attach_request_logging(app, service=service_name, metric_prefix=metric_prefix or service_name)
    attach_standard_error_handlers(app, service=service_name)
    if attach_metrics_endpoint:
        attach_prometheus_endpoint(app)

    origins = _parse_origins(os.getenv(enable_cors_env))
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=False,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

__all__ = ["setup_service"]
