import io, json
from contextlib import redirect_stdout

from core_logging import (
    bind_consumer_id, bind_request_id, current_consumer_id, current_request_id, get_logger, log_stage, record_error,
)


def _lines(buf: io.StringIO, prefix: str):
    out = []
    for line in buf.getvalue().splitlines():
        try:
            rec = json.loads(line)
        except json.JSONDecodeError:
            continue
        if rec.get("service", "").startswith(prefix):
            out.append(rec)
    return out


def test_log_envelope_compliance():
    """Envelope keys stay flat; stage-specific fields nest under *meta*."""
    get_logger("imgtest")
    logger = get_logger("imgtest.enhancer")
    buf = io.StringIO()
    with redirect_stdout(buf):
        log_stage(logger, "image_styles", "enhanced",
                  request_id="req123", uuid="u-1", style_ids=["large", "thumbnail"], latency_ms=3)

    [payload] = _lines(buf, "imgtest")
    assert payload["ts"]
    assert payload["level"] == "INFO"
    assert payload["service"] == "imgtest.enhancer"
    assert payload["event"] == "enhanced"
    assert payload["stage"] == "image_styles"
    assert payload["request_id"] == "req123"
    assert payload["latency_ms"] == 3
    assert payload["meta"] == {"uuid": "u-1", "style_ids": ["large", "thumbnail"]}


def test_bound_context_is_injected():
    logger = get_logger("imgtest_ctx")
    buf = io.StringIO()
    bind_request_id("rid-42")
    bind_consumer_id("mobile-app")
    try:
        assert current_request_id() == "rid-42"
        assert current_consumer_id() == "mobile-app"
        with redirect_stdout(buf):
            log_stage(logger, "consumer", "negotiated")
    finally:
        bind_request_id(None)
        bind_consumer_id(None)
    [payload] = _lines(buf, "imgtest_ctx")
    assert payload["request_id"] == "rid-42"
    assert payload["consumer_id"] == "mobile-app"


def test_record_error_shape():
    logger = get_logger("imgtest_err")
    buf = io.StringIO()
    with redirect_stdout(buf):
        record_error("catalog_unavailable", where="enhancer.bulk_load", message="boom",
                     logger=logger, level="WARNING", filename="cat.jpg")
    [payload] = _lines(buf, "imgtest_err")
    assert payload["level"] == "WARNING"
    assert payload["event"] == "error"
    assert payload["stage"] == "error"
    assert payload["meta"]["code"] == "catalog_unavailable"
    assert payload["meta"]["where"] == "enhancer.bulk_load"
    assert payload["meta"]["error_message"] == "boom"
    # reserved LogRecord attribute names are renamed, not dropped
    assert payload["meta"]["filename_extra"] == "cat.jpg"


def test_log_stage_decorator_and_ctx():
    logger = get_logger("imgtest_dec")
    buf = io.StringIO()
    with redirect_stdout(buf):
        @log_stage(logger, "unit", "work")
        def work(x):
            return x * 2

        assert work(2) == 4
        with log_stage(logger, "unit", "block").ctx(item=1):
            pass

    events = [r["event"] for r in _lines(buf, "imgtest_dec")]
    assert events == ["work", "work.done", "block", "block.start", "block.done"]
