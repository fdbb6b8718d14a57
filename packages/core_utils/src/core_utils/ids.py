import uuid

def generate_request_id() -> str:
    """
    Non-deterministic 16-hex id for logging and error envelopes.
    Kept short for log readability.
    """
    return uuid.uuid4().hex[:16]

__all__ = ["generate_request_id"]
