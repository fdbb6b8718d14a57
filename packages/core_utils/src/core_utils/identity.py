from __future__ import annotations
from typing import Dict, Any, Mapping
from core_http.headers import X_USER_ID, X_USER_ROLES

def _headers_lc(headers: Mapping[str, str] | Dict[str, str]) -> Dict[str, str]:
    """Lowercase header keys; values unchanged."""
    return { (str(k).lower() if isinstance(k, str) else k): v for k, v in (headers or {}).items() }

def identity_from_headers(headers: Mapping[str, str]) -> Dict[str, Any]:
    """Normalise caller identity fields from request headers.
    Accepts both lower- and upper-cased names. Roles are comma-separated,
    lower-cased, de-duplicated and sorted.
    """
    h = _headers_lc(headers)
    roles_raw = [r.strip().lower() for r in str(h.get(X_USER_ROLES.lower()) or "").split(",") if r.strip()]
    return {
        "user_id": str(h.get(X_USER_ID.lower()) or "").strip(),
        "roles":   sorted(dict.fromkeys(roles_raw)),
    }
