"""
The image-styles field enhancer.

Outbound (serialisation) direction adds ``meta.links`` to an image field:

    {"type": "file--file", "id": "<uuid>", "meta": {"alt": "...", "links": {
        "thumbnail": {"href": "https://.../styles/thumbnail/public/cat.jpg?itok=...",
                      "meta": {"rel": ["urn:...:derivative"]}}}}}

Every failure (no styles, unknown file, not an image, no view access,
unreadable catalog, a collaborator raising) returns the original value
untouched, so a denied file looks exactly like a file with nothing to add.
"""
from __future__ import annotations

from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

import core_metrics
from core_config.constants import DEFAULT_IMAGE_EXTENSIONS, ENHANCER_ID, ENHANCER_LABEL
from core_logging import get_logger, log_stage, record_error
from core_logging.error_codes import ErrorCode

from .consumers import granted_style_ids
from .errors import CatalogUnavailable
from .gate import Skip, resolve_image_resource
from .links import build_derivative_link
from .merge import merge_links
from .models import Caller, Consumer, FieldConfiguration, FieldValue, StyleSettings
from .ports import AccessChecker, EntityRepository, StyleCatalog
from .schema import output_json_schema
from .styleset import resolve_style_ids

logger = get_logger("consumer_image_styles.enhancer")


def _skipped(reason: str) -> None:
    log_stage(logger, "image_styles", "skipped", reason=reason)
    core_metrics.counter("image_styles_skipped_total", 1, reason=reason)


def _enhance(
    value: FieldValue,
    config: FieldConfiguration,
    caller: Caller,
    catalog: StyleCatalog,
    repository: EntityRepository,
    access: AccessChecker,
    image_extensions: Iterable[str],
) -> FieldValue:
    if not isinstance(value, Mapping):
        _skipped("not_an_object")
        return value

    style_ids = resolve_style_ids(config)
    if not style_ids:
        _skipped("no_styles")
        return value

    resource = resolve_image_resource(
        value.get("id"), caller,
        repository=repository, access=access, image_extensions=image_extensions,
    )
    if isinstance(resource, Skip):
        _skipped(resource.reason.value)
        return value

    # One failing style definition fails the whole load: no styles at all.
    try:
        styles = catalog.bulk_load(style_ids)
    except CatalogUnavailable as exc:
        record_error(ErrorCode.catalog_unavailable.value, where="enhancer.bulk_load",
                     message=str(exc), logger=logger, level="WARNING")
        styles = {}
    if not styles:
        _skipped("no_styles")
        return value

    links = {sid: build_derivative_link(resource.uri, sid, catalog) for sid in styles}
    result = merge_links(value, links)
    if result is value:
        _skipped("merge_skipped")
        return value
    log_stage(logger, "image_styles", "enhanced", uuid=resource.uuid, style_ids=sorted(links))
    core_metrics.counter("image_styles_enhanced_total", 1)
    core_metrics.counter("image_styles_links_total", len(links))
    return result


def enhance_image_field(
    value: FieldValue,
    config: FieldConfiguration,
    caller: Caller,
    *,
    catalog: StyleCatalog,
    repository: EntityRepository,
    access: AccessChecker,
    image_extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS,
) -> FieldValue:
    """
    Add derivative links for every style this field may expose to *caller*.

    Pure in (value, config, caller) given the three collaborators; never
    raises and never mutates *value*.
    """
    try:
        return _enhance(value, config, caller, catalog, repository, access, image_extensions)
    except Exception as exc:
        record_error(ErrorCode.enhancement_failed.value, where="enhancer.enhance_image_field",
                     message=str(exc), logger=logger, error_type=exc.__class__.__name__)
        core_metrics.counter("image_styles_skipped_total", 1, reason="error")
        return value


class ImageStylesEnhancer:
    """Field enhancer bound to one field's configuration and its collaborators."""

    id = ENHANCER_ID
    label = ENHANCER_LABEL
    description = "Adds links for images with image styles applied to them."

    def __init__(
        self,
        configuration: FieldConfiguration,
        *,
        catalog: StyleCatalog,
        repository: EntityRepository,
        access: AccessChecker,
        image_extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS,
    ) -> None:
        self.configuration = configuration
        self.catalog = catalog
        self.repository = repository
        self.access = access
        self.image_extensions = frozenset(image_extensions)

    @classmethod
    def create(
        cls,
        settings: Optional[Mapping[str, Any] | StyleSettings],
        *,
        consumer: Optional[Consumer],
        catalog: StyleCatalog,
        repository: EntityRepository,
        access: AccessChecker,
        image_extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS,
    ) -> "ImageStylesEnhancer":
        """
        Build the enhancer for the current request: the negotiated consumer's
        styles become the granted set; no consumer means no styles.
        """
        if isinstance(settings, StyleSettings):
            raw: Dict[str, Any] = {"styles": settings}
        else:
            raw = dict(settings) if isinstance(settings, Mapping) else {}
        config = FieldConfiguration.from_mapping(raw, granted_style_ids(consumer, catalog))
        return cls(config, catalog=catalog, repository=repository, access=access,
                   image_extensions=image_extensions)

    def style_ids(self) -> FrozenSet[str]:
        return resolve_style_ids(self.configuration)

    def transform(self, value: Any) -> Any:
        """Inbound (write) direction: image fields are accepted as sent."""
        return value

    def enhance(self, value: FieldValue, caller: Caller) -> FieldValue:
        return enhance_image_field(
            value, self.configuration, caller,
            catalog=self.catalog, repository=self.repository, access=self.access,
            image_extensions=self.image_extensions,
        )

    def output_json_schema(self) -> Dict[str, Any]:
        return output_json_schema()


__all__ = ["enhance_image_field", "ImageStylesEnhancer"]
