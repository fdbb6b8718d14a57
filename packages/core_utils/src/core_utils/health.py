"""
core_utils.health – health-check routes for FastAPI services.

Provides attach_health_routes() to wire /healthz and /readyz with custom
liveness and readiness checks.
"""

import asyncio
from typing import Awaitable, Callable, Mapping, Union

from fastapi import APIRouter, FastAPI

# A health check can return:
#  - bool
#  - dict (arbitrary JSON body)
#  - Awaitable of either
HealthCheck = Callable[[], Union[bool, dict, Awaitable[Union[bool, dict]]]]
HealthChecks = Mapping[str, HealthCheck]


def attach_health_routes(app: FastAPI, *, checks: HealthChecks) -> None:
    """
    Register health-check endpoints on the app.

    Args:
        app: FastAPI application
        checks: mapping with keys "liveness" and/or "readiness" to callables.

    Endpoints:
        GET /healthz -> { "status": "ok" | "fail" } or custom dict.
        GET /readyz -> readiness check result directly if dict, or
                       { "ready": <bool> }.
    """
    router = APIRouter()

    async def _run_check(fn: HealthCheck) -> Union[bool, dict]:
        try:
            res = fn()
            if asyncio.iscoroutine(res):
                res = await res
            return res
        except Exception:
            # A crashing probe reports "not healthy" instead of a 500.
            return False

    @router.get("/healthz")
    async def _healthz():
        if "liveness" not in checks:
            return {"status": "ok"}
        res = await _run_check(checks["liveness"])
        if isinstance(res, dict):
            return res
        return {"status": "ok" if bool(res) else "fail"}

    @router.get("/readyz")
    async def _readyz():
        if "readiness" not in checks:
            return {"ready": True}
        res = await _run_check(checks["readiness"])
        if isinstance(res, dict):
            return res
        return {"ready": bool(res)}

    app.include_router(router)
