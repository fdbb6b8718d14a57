from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from core_logging import get_logger, record_error
from core_logging.error_codes import ErrorCode

from .errors import CatalogUnavailable
from .models import StyleSettings
from .ports import StyleCatalog

logger = get_logger("consumer_image_styles.settings_form")


def build_settings_form(catalog: StyleCatalog, current: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Describe the per-field settings as data for an admin surface to render:
    one checkbox to turn refinement on and one checkbox list over every
    catalog style. Without stored settings every style starts selected.
    """
    try:
        options = {sid: style.label for sid, style in catalog.load_all().items()}
    except CatalogUnavailable as exc:
        record_error(ErrorCode.catalog_unavailable.value, where="settings_form.load_all",
                     message=str(exc), logger=logger, level="WARNING")
        options = {}

    raw = current.get("styles") if isinstance(current, Mapping) else None
    settings = StyleSettings.model_validate(raw if isinstance(raw, Mapping) else {})
    if settings.custom_selection:
        selected = [sid for sid in settings.custom_selection if sid]
    else:
        selected = list(options)

    return {
        "styles": {
            "title": "Image Styles options",
            "refine": {
                "type": "checkbox",
                "title": "Refine selection?",
                "description": "Reduces the list of image styles in the output calculated from the consumer configuration.",
                "default_value": settings.refine,
            },
            "custom_selection": {
                "type": "checkboxes",
                "title": "Image Styles",
                "description": (
                    "Narrow down the image styles to display on this field. Styles selected here "
                    "that the requesting consumer is not allowed to use will not appear in the output."
                ),
                "options": options,
                "default_value": selected,
                "visible_when": {"refine": True},
            },
        }
    }


__all__ = ["build_settings_form"]
