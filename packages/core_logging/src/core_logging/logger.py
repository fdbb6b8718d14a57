import logging, sys, orjson, os
from typing import Any, Optional, Dict
import time
import asyncio
import contextvars
from contextlib import contextmanager

# ────────────────────────────────────────────────────────────
# Request-scoped context (request id / consumer id)
# ────────────────────────────────────────────────────────────
_REQUEST_ID: contextvars.ContextVar[Optional[str]] = \
    contextvars.ContextVar("_REQUEST_ID", default=None)
_CONSUMER_ID: contextvars.ContextVar[Optional[str]] = \
    contextvars.ContextVar("_CONSUMER_ID", default=None)

def bind_request_id(request_id: Optional[str]) -> None:
    """Bind the current request_id into the local context for log injection."""
    _REQUEST_ID.set(request_id)

def current_request_id() -> Optional[str]:
    """Return the currently bound request_id (if any)."""
    return _REQUEST_ID.get()

def bind_consumer_id(consumer_id: Optional[str]) -> None:
    """Bind the negotiated API consumer so every line of the request carries it."""
    _CONSUMER_ID.set(consumer_id)

def current_consumer_id() -> Optional[str]:
    return _CONSUMER_ID.get()


class _ContextFilter(logging.Filter):
    """Inject the bound request_id / consumer_id into LogRecords that lack them."""
    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            rid = _REQUEST_ID.get()
            if rid:
                record.request_id = rid
        if getattr(record, "consumer_id", None) is None:
            cid = _CONSUMER_ID.get()
            if cid:
                record.consumer_id = cid
        return True

# Reserved LogRecord attributes we must not overwrite
_RESERVED: set[str] = {
    "name","msg","args","levelname","levelno",
    "pathname","filename","module","exc_info","exc_text","stack_info",
    "lineno","funcName","created","msecs","relativeCreated",
    "thread","threadName","processName","process","message","asctime",
    "taskName",
}

# Top-level fields of the log envelope; everything else goes under ``meta``.
_TOP_LEVEL: set[str] = {
    "ts",
    "level",
    "service",
    "stage",
    "latency_ms",
    "request_id",
    "consumer_id",
    "status_code",
    "path",
    "method",
}

def _default(obj):
    if isinstance(obj, bytes):
        return obj.decode("utf-8", errors="ignore")
    if isinstance(obj, (set, frozenset, tuple)):
        return sorted(obj, key=str) if isinstance(obj, (set, frozenset)) else list(obj)
    return str(obj)

class JsonFormatter(logging.Formatter):
    """Emit one JSON object per record.

    ``event`` is the log message; envelope keys stay flat and any other
    structured extras are nested under ``meta``.
    """

    def format(self, record: logging.LogRecord) -> str:
        base: Dict[str, Any] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(getattr(record, "created", time.time()))),
            "level": record.levelname,
            "service": os.getenv("SERVICE_NAME", record.name),
            "event": record.getMessage(),
        }
        meta: Dict[str, Any] = {}
        for key, val in record.__dict__.items():
            if key in _RESERVED:
                continue
            if key in _TOP_LEVEL:
                base[key] = val
            else:
                meta[key] = val
        if record.exc_info:
            meta["exc"] = self.formatException(record.exc_info)
        if meta:
            base["meta"] = meta
        return orjson.dumps(base, default=_default).decode("utf-8")

def _sanitize_extra(extra: Dict[str, Any] | None) -> Dict[str, Any]:
    """Rename keys that would collide with LogRecord internals (``message`` → ``message_extra``)."""
    if not extra:
        return {}
    out: Dict[str, Any] = {}
    for k, v in extra.items():
        if k in _RESERVED:
            out[f"{k}_extra"] = v
        else:
            out[k] = v
    return out

class StructuredLogger(logging.Logger):
    """
    `logging.Logger` that accepts arbitrary keyword arguments
    (``logger.info("skip", reason="not_found")``) and merges them into
    ``extra``.
    """

    def _log(                                   # noqa: PLR0913 – keep signature
        self,
        level: int,
        msg: str,
        args,
        exc_info=None,
        extra: Dict[str, Any] | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        **kwargs: Any,
    ) -> None:
        if kwargs:
            extra = {**(extra or {}), **kwargs}
        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=_sanitize_extra(extra),
            stack_info=stack_info,
            stacklevel=stacklevel,
        )


class DynamicStdoutHandler(logging.StreamHandler):
    """
    Writes to whatever `sys.stdout` is at emit time, so tests that redirect
    stdout after the logger was built still capture the line.
    """

    def emit(self, record: logging.LogRecord) -> None:  # noqa: D401
        self.setStream(sys.stdout)
        super().emit(record)


logging.setLoggerClass(StructuredLogger)


def get_logger(name: str = "app", level: str | None = None) -> logging.Logger:
    logger = logging.getLogger(name)
    is_service_root = "." not in name  # only top-level names own handlers

    if is_service_root:
        if not logger.handlers:
            handler = DynamicStdoutHandler()
            handler.setFormatter(JsonFormatter())
            logger.addHandler(handler)
        logger.propagate = False
    else:
        # Module loggers bubble up to their service root.
        for h in list(logger.handlers):
            logger.removeHandler(h)
        logger.propagate = True

    logger.setLevel(level or os.getenv("SERVICE_LOG_LEVEL", "INFO"))
    if not any(isinstance(f, _ContextFilter) for f in logger.filters):
        logger.addFilter(_ContextFilter())
    return logger

def _emit_stage_log(logger: logging.Logger, stage: str, event: str, **extras: Any) -> None:
    logger.info(event, extra=_sanitize_extra({"stage": stage, **extras}))

def log_stage(logger: logging.Logger, stage: str, event: str, **fixed: Any):
    """
    *Imperative*  →  log_stage(logger, "image_styles", "skipped", reason="not_found")
    *Decorator*   →  @log_stage(logger, "gateway", "enhance")
                     async def enhance(...):
                         ...
    The returned decorator also exposes ``.ctx`` for use as a context manager.
    """
    _emit_stage_log(logger, stage, event, **fixed)

    def _decorator(fn):
        if asyncio.iscoroutinefunction(fn):
            async def _aw(*a, **kw):
                t0 = time.perf_counter()
                try:
                    return await fn(*a, **kw)
                finally:
                    _emit_stage_log(
                        logger, stage, f"{event}.done",
                        latency_ms=(time.perf_counter() - t0) * 1000,
                        **fixed,
                    )
            return _aw

        def _w(*a, **kw):
            t0 = time.perf_counter()
            try:
                return fn(*a, **kw)
            finally:
                _emit_stage_log(
                    logger, stage, f"{event}.done",
                    latency_ms=(time.perf_counter() - t0) * 1000,
                    **fixed,
                )
        return _w

    @contextmanager
    def _ctx(**dynamic):
        _emit_stage_log(logger, stage, f"{event}.start", **(fixed | dynamic))
        t0 = time.perf_counter()
        try:
            yield
        finally:
            _emit_stage_log(
                logger, stage, f"{event}.done",
                latency_ms=(time.perf_counter() - t0) * 1000,
                **(fixed | dynamic),
            )

    _decorator.ctx = _ctx
    return _decorator

def record_error(
    code: str,
    *,
    where: str,
    message: str,
    logger: logging.Logger,
    context: Optional[Dict[str, Any]] = None,
    level: str = "ERROR",
    **extras: Any,
) -> None:
    """
    Emit one normalized error line. Safe to call from any failure path; the
    caller decides what to do next (the image-styles core always degrades to
    a pass-through).
    """
    payload: Dict[str, Any] = {
        "stage": "error",
        "code": str(code),
        "where": str(where),
        "error_message": str(message),
        **({"context": context} if isinstance(context, dict) else {}),
        **extras,
    }
    logger.log(logging.getLevelName(level.upper()), "error", extra=_sanitize_extra(payload))
