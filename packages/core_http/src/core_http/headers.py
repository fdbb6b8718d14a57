"""
Canonical HTTP header names used by the image-styles gateway.
"""
from typing import Final, Mapping, Optional

# --- Caller identity (set by the authenticating edge) ---------------------------
X_USER_ID: Final[str]               = "X-User-Id"
X_USER_ROLES: Final[str]            = "X-User-Roles"

# --- API consumer selection ------------------------------------------------------
X_CONSUMER_ID: Final[str]           = "X-Consumer-ID"

# --- Correlation -------------------------------------------------------------------
X_REQUEST_ID: Final[str]            = "X-Request-Id"

def header_value(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive lookup; blank values count as absent."""
    want = name.lower()
    for k, v in (headers or {}).items():
        if str(k).lower() == want and isinstance(v, str) and v.strip():
            return v.strip()
    return None

__all__ = [
    "X_USER_ID",
    "X_USER_ROLES",
    "X_CONSUMER_ID",
    "X_REQUEST_ID",
    "header_value",
]
