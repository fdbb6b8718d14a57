"""
Styles / consumers / files served by this gateway, read from one JSON file:

    {
      "default_consumer_id": "default",
      "styles":    [{"id": "thumbnail", "label": "Thumbnail (100×100)"}, ...],
      "consumers": [{"id": "mobile-app", "image_style_ids": ["thumbnail"]}, ...],
      "files":     [{"uuid": "...", "filename": "cat.jpg", "uri": "public://cat.jpg"}, ...]
    }

The parsed registry is cached per (path, mtime, settings). A missing or
malformed file yields an empty registry: no styles, so every field passes
through untouched.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

from pydantic import ValidationError

import core_metrics
from consumer_image_styles import (
    CatalogUnavailable, Consumer, ConsumerRegistry, DerivativeUrlBuilder,
    FileAccessPolicy, FileEntity, FileRepository, ImageStyle, StyleRegistry,
)
from core_config import Settings, get_settings
from core_logging import get_logger, log_stage, record_error
from core_logging.error_codes import ErrorCode
from core_utils import jsonx

logger = get_logger("gateway.registry")

_DEFAULT_PATH = Path(__file__).parent / "data" / "registry.json"


@dataclass(frozen=True)
class Registry:
    catalog: StyleRegistry
    files: FileRepository
    consumers: ConsumerRegistry
    access: FileAccessPolicy
    loaded: bool = True


_CACHE: Optional[Tuple[Tuple[str, float, str], Registry]] = None


def registry_path(settings: Settings) -> Path:
    p = settings.image_styles_registry_path
    return Path(p).expanduser() if p else _DEFAULT_PATH


def empty_registry(settings: Settings) -> Registry:
    return Registry(
        catalog=StyleRegistry((), DerivativeUrlBuilder.from_settings(settings)),
        files=FileRepository(),
        consumers=ConsumerRegistry(),
        access=FileAccessPolicy(settings.file_admin_roles),
        loaded=False,
    )


def _section(data: Mapping[str, Any], name: str) -> list:
    raw = data.get(name)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise CatalogUnavailable(f"registry '{name}' must be a list")
    return raw


def parse_registry(data: Any, settings: Settings) -> Registry:
    """Build a Registry from decoded JSON; malformed content raises CatalogUnavailable."""
    if not isinstance(data, Mapping):
        raise CatalogUnavailable("registry root must be an object")
    try:
        styles = [ImageStyle.model_validate(s) for s in _section(data, "styles")]
        consumers = [Consumer.model_validate(c) for c in _section(data, "consumers")]
        files = [FileEntity.model_validate(f) for f in _section(data, "files")]
    except ValidationError as exc:
        raise CatalogUnavailable(f"invalid registry entry: {exc.error_count()} error(s)") from exc
    default_consumer = settings.default_consumer_id or data.get("default_consumer_id")
    if default_consumer is not None and not isinstance(default_consumer, str):
        raise CatalogUnavailable("registry 'default_consumer_id' must be a string")
    return Registry(
        catalog=StyleRegistry(styles, DerivativeUrlBuilder.from_settings(settings)),
        files=FileRepository(files),
        consumers=ConsumerRegistry(consumers, default_consumer_id=default_consumer),
        access=FileAccessPolicy(settings.file_admin_roles),
    )


def load_registry(settings: Optional[Settings] = None) -> Registry:
    global _CACHE
    settings = settings or get_settings()
    path = registry_path(settings)
    try:
        mtime = path.stat().st_mtime
    except OSError as exc:
        record_error(ErrorCode.registry_unavailable.value, where="registry.stat",
                     message=str(exc), logger=logger, path=str(path))
        return empty_registry(settings)

    key = (str(path), mtime, settings.model_dump_json())
    if _CACHE is not None and _CACHE[0] == key:
        return _CACHE[1]
    try:
        registry = parse_registry(jsonx.loads(path.read_bytes()), settings)
    except (OSError, ValueError, CatalogUnavailable) as exc:
        record_error(ErrorCode.registry_unavailable.value, where="registry.parse",
                     message=str(exc), logger=logger, path=str(path),
                     error_type=exc.__class__.__name__)
        return empty_registry(settings)
    _CACHE = (key, registry)
    core_metrics.gauge("image_styles_registry_styles", len(registry.catalog))
    log_stage(logger, "registry", "loaded", path=str(path),
              styles=len(registry.catalog), consumers=len(registry.consumers), files=len(registry.files))
    return registry


def reset_registry_cache() -> None:
    global _CACHE
    _CACHE = None


__all__ = ["Registry", "registry_path", "empty_registry", "parse_registry", "load_registry", "reset_registry_cache"]
