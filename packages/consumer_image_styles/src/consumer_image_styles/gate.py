from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Union

from pydantic import BaseModel, ConfigDict

from core_config.constants import DEFAULT_IMAGE_EXTENSIONS
from core_logging import get_logger, log_stage, record_error
from core_logging.error_codes import ErrorCode

from .errors import EntityStorageError
from .files import entity_is_image
from .models import Caller, ImageResource
from .ports import AccessChecker, EntityRepository

logger = get_logger("consumer_image_styles.gate")


class SkipReason(str, Enum):
    not_found     = "not_found"
    not_image     = "not_image"
    access_denied = "access_denied"
    storage_error = "storage_error"


class Skip(BaseModel):
    """The enhancement is a no-op; ``reason`` is for server-side logs only."""
    model_config = ConfigDict(frozen=True)

    reason: SkipReason


def resolve_image_resource(
    reference: Any,
    viewer: Caller,
    *,
    repository: EntityRepository,
    access: AccessChecker,
    image_extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS,
) -> Union[ImageResource, Skip]:
    """Turn the opaque file reference on the wire into a viewable image, or a Skip."""
    if not isinstance(reference, str) or not reference:
        return Skip(reason=SkipReason.not_found)

    try:
        entity = repository.find_by_uuid("file", reference)
    except EntityStorageError as exc:
        record_error(ErrorCode.entity_storage_error.value, where="gate.find_by_uuid",
                     message=str(exc), logger=logger, level="WARNING")
        return Skip(reason=SkipReason.storage_error)

    if entity is None or entity.entity_type != "file":
        return Skip(reason=SkipReason.not_found)

    if not entity_is_image(entity, image_extensions):
        return Skip(reason=SkipReason.not_image)

    try:
        allowed = bool(access.can_view(entity, viewer))
    except Exception as exc:
        # Fail closed: an access check that cannot answer is a denial.
        record_error(ErrorCode.access_check_failed.value, where="gate.can_view",
                     message=str(exc), logger=logger, level="WARNING",
                     error_type=exc.__class__.__name__)
        allowed = False
    if not allowed:
        return Skip(reason=SkipReason.access_denied)

    log_stage(logger, "image_styles", "image_resolved", uuid=entity.uuid, scheme=entity.scheme)
    return ImageResource(uuid=entity.uuid, uri=entity.uri)


__all__ = ["SkipReason", "Skip", "resolve_image_resource"]
