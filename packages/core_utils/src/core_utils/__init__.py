from .ids import generate_request_id
from . import jsonx

__all__ = [
    "generate_request_id",
    "jsonx",
]
