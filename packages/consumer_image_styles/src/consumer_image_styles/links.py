from __future__ import annotations

from .models import DerivativeLink
from .ports import StyleCatalog


def build_derivative_link(uri: str, style_id: str, catalog: StyleCatalog) -> DerivativeLink:
    """Same (uri, style_id) against the same catalog always yields the same link."""
    return DerivativeLink(
        style_id=style_id,
        href=catalog.build_url(uri, style_id),
        rel=tuple(catalog.relations_for(style_id)),
    )


__all__ = ["build_derivative_link"]
