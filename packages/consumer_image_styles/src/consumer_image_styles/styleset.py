from __future__ import annotations

from typing import FrozenSet

from .models import FieldConfiguration


def resolve_style_ids(config: FieldConfiguration) -> FrozenSet[str]:
    """
    Styles to render for one field.

    By default every style granted to the consumer is exposed. A field may
    refine that down to a custom selection; the selection can only narrow
    the granted set, never add to it. An empty selection counts as "not
    refined".
    """
    granted = config.granted_style_ids
    if not config.refine or not config.custom_selection:
        return granted
    selected = {sid for sid in config.custom_selection if sid}
    return frozenset(selected & granted)


__all__ = ["resolve_style_ids"]
