from .logger import (
    get_logger,
    log_stage,
    bind_request_id,
    current_request_id,
    bind_consumer_id,
    current_consumer_id,
    record_error,
)

__all__ = [
    "get_logger",
    "log_stage",
    "bind_request_id",
    "current_request_id",
    "bind_consumer_id",
    "current_consumer_id",
    "record_error",
]
