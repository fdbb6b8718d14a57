from __future__ import annotations

import copy
import functools
from pathlib import Path
from typing import Any, Dict

from core_utils import jsonx

SCHEMAS_DIR = Path(__file__).parent / "schemas"
OUTPUT_SCHEMA_FILE = "image_styles.field.json"


@functools.lru_cache(maxsize=None)
def _load(name: str) -> Dict[str, Any]:
    return jsonx.loads((SCHEMAS_DIR / name).read_bytes())


def output_json_schema() -> Dict[str, Any]:
    """JSON Schema (2020-12) of an enhanced image field value; callers get their own copy."""
    return copy.deepcopy(_load(OUTPUT_SCHEMA_FILE))


__all__ = ["SCHEMAS_DIR", "OUTPUT_SCHEMA_FILE", "output_json_schema"]
