from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Tuple
from jsonschema import Draft202012Validator, FormatChecker
import consumer_image_styles.schema  # used to locate the canonical schemas directory
from core_logging import get_logger, log_stage

logger = get_logger("core_validator")
_SCHEMA_DIR_LOGGED = False

_VALIDATOR_CACHE: Dict[str, Draft202012Validator] = {}

def _verbose() -> bool:
    # Reduce noise by default; set VALIDATOR_VERBOSE=1 to log every violation.
    return os.getenv("VALIDATOR_VERBOSE", "0") == "1"

def _schemas_dir() -> Path:
    """
    Resolve the schemas directory used by the validator.
    Priority:
      1) IMAGE_STYLES_SCHEMAS_DIR (explicit override for tests / dev)
      2) consumer_image_styles/schemas (canonical, versioned with the package)
    """
    global _SCHEMA_DIR_LOGGED
    env_dir = os.getenv("IMAGE_STYLES_SCHEMAS_DIR")
    if env_dir:
        p = Path(env_dir).expanduser().resolve()
        if p.exists():
            if not _SCHEMA_DIR_LOGGED:
                logger.info("core_validator.resolved_schemas_dir", extra={"dir": str(p)})
                _SCHEMA_DIR_LOGGED = True
            return p
        logger.warning("core_validator.schemas_dir_missing_env", extra={"dir": str(p)})
    default_dir = consumer_image_styles.schema.SCHEMAS_DIR.resolve()
    if not _SCHEMA_DIR_LOGGED:
        logger.info("core_validator.resolved_schemas_dir", extra={"dir": str(default_dir)})
        _SCHEMA_DIR_LOGGED = True
    return default_dir

def _load_schema(name: str) -> Dict[str, Any]:
    p = _schemas_dir() / name
    if not p.exists():
        raise FileNotFoundError(f"schema not found: {p}")
    with open(p, "r", encoding="utf-8") as f:
        return json.load(f)

def _validator(name: str) -> Draft202012Validator:
    v = _VALIDATOR_CACHE.get(name)
    if v is None:
        schema = _load_schema(name)
        Draft202012Validator.check_schema(schema)
        v = Draft202012Validator(schema, format_checker=FormatChecker())
        _VALIDATOR_CACHE[name] = v
    return v

def reset_validator_cache() -> None:
    """Forget compiled validators (tests switching IMAGE_STYLES_SCHEMAS_DIR)."""
    global _SCHEMA_DIR_LOGGED
    _VALIDATOR_CACHE.clear()
    _SCHEMA_DIR_LOGGED = False

def _error_entry(err) -> Dict[str, Any]:
    return {
        "code": f"schema.{err.validator}",
        "path": "/" + "/".join(str(p) for p in err.absolute_path),
        "message": err.message,
    }

def validate_enhanced_field(value: Any) -> Tuple[bool, List[Dict[str, Any]]]:
    """
    Check an (enhanced) image field value against image_styles.field.json.
    Returns (ok, errors); errors are sorted by JSON pointer for stable output.
    """
    v = _validator(consumer_image_styles.schema.OUTPUT_SCHEMA_FILE)
    errors = sorted((_error_entry(e) for e in v.iter_errors(value)), key=lambda e: (e["path"], e["code"]))
    if errors:
        if _verbose():
            for e in errors:
                log_stage(logger, "validator", "violation", **e)
        log_stage(logger, "validator", "enhanced_field_invalid", error_count=len(errors))
    return (not errors), errors
