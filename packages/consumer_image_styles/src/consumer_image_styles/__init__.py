"""
consumer_image_styles: per-consumer derivative image links for API payloads.

Re-exports the stable surface so hosts import from one place.
"""

from core_logging import get_logger

# Service root for every consumer_image_styles.* module logger.
get_logger("consumer_image_styles")

from .errors import ImageStylesError, CatalogUnavailable, EntityStorageError  # noqa: E402
from .models import (  # noqa: E402
    FieldValue, StyleSettings, FieldConfiguration, ImageStyle, FileEntity,
    ImageResource, Caller, Consumer, DerivativeLink,
)
from .ports import StyleCatalog, EntityRepository, AccessChecker, ConsumerNegotiator  # noqa: E402
from .styleset import resolve_style_ids  # noqa: E402
from .gate import Skip, SkipReason, resolve_image_resource  # noqa: E402
from .links import build_derivative_link  # noqa: E402
from .merge import merge_links  # noqa: E402
from .catalog import DerivativeUrlBuilder, StyleRegistry  # noqa: E402
from .files import FileRepository, FileAccessPolicy, entity_is_image  # noqa: E402
from .consumers import ConsumerRegistry, granted_style_ids  # noqa: E402
from .settings_form import build_settings_form  # noqa: E402
from .schema import output_json_schema  # noqa: E402
from .enhancer import enhance_image_field, ImageStylesEnhancer  # noqa: E402

__all__ = [
    "ImageStylesError", "CatalogUnavailable", "EntityStorageError",
    "FieldValue", "StyleSettings", "FieldConfiguration", "ImageStyle", "FileEntity",
    "ImageResource", "Caller", "Consumer", "DerivativeLink",
    "StyleCatalog", "EntityRepository", "AccessChecker", "ConsumerNegotiator",
    "resolve_style_ids",
    "Skip", "SkipReason", "resolve_image_resource",
    "build_derivative_link",
    "merge_links",
    "DerivativeUrlBuilder", "StyleRegistry",
    "FileRepository", "FileAccessPolicy", "entity_is_image",
    "ConsumerRegistry", "granted_style_ids",
    "build_settings_form",
    "output_json_schema",
    "enhance_image_field", "ImageStylesEnhancer",
]
