from __future__ import annotations

import copy
from typing import Any, Dict, Mapping, MutableMapping

from core_logging import get_logger, log_stage

from .models import DerivativeLink, FieldValue

logger = get_logger("consumer_image_styles.merge")


def _deep_merge(dst: MutableMapping[str, Any], src: Mapping[str, Any]) -> None:
    """
    Additive merge of *src* into *dst*:
      - missing keys are added
      - mappings on both sides merge recursively
      - lists on both sides gain the items they do not already hold
      - any other existing value is kept
    """
    for key, val in src.items():
        if key not in dst:
            dst[key] = copy.deepcopy(val)
            continue
        cur = dst[key]
        if isinstance(cur, MutableMapping) and isinstance(val, Mapping):
            _deep_merge(cur, val)
        elif isinstance(cur, list) and isinstance(val, list):
            cur.extend(copy.deepcopy(v) for v in val if v not in cur)


def merge_links(original: FieldValue, links: Mapping[str, DerivativeLink]) -> FieldValue:
    """
    Attach derivative links under ``meta.links`` without touching anything
    else. ``original`` is never mutated; with no links it is returned as is.
    """
    if not links:
        return original
    meta = original.get("meta")
    if meta is not None and not isinstance(meta, Mapping):
        log_stage(logger, "image_styles", "merge_skipped", reason="meta_not_object")
        return original
    existing_links = meta.get("links") if meta is not None else None
    if existing_links is not None and not isinstance(existing_links, Mapping):
        log_stage(logger, "image_styles", "merge_skipped", reason="links_not_object")
        return original

    result: Dict[str, Any] = copy.deepcopy(dict(original))
    if meta is None:
        result["meta"] = {}
    if result["meta"].get("links") is None:
        result["meta"]["links"] = {}
    addition = {"links": {sid: links[sid].as_link_object() for sid in sorted(links)}}
    _deep_merge(result["meta"], addition)
    return result


__all__ = ["merge_links"]
