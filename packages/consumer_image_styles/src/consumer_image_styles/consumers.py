from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional

from core_config.constants import CONSUMER_ID_QUERY_PARAM
from core_http.headers import X_CONSUMER_ID, header_value
from core_logging import get_logger, log_stage, record_error
from core_logging.error_codes import ErrorCode

from .errors import CatalogUnavailable
from .models import Consumer
from .ports import StyleCatalog

logger = get_logger("consumer_image_styles.consumers")


class ConsumerRegistry:
    """
    Negotiates the API consumer of a request: the ``X-Consumer-ID`` header
    wins over the ``_consumer_id`` query parameter; requests naming nothing
    (or an unknown id) fall back to the default consumer when one is set.
    """

    def __init__(self, consumers: Iterable[Consumer] = (), default_consumer_id: Optional[str] = None) -> None:
        self._by_id: Dict[str, Consumer] = {c.id: c for c in consumers}
        self.default_consumer_id = default_consumer_id

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, consumer_id: Optional[str]) -> Optional[Consumer]:
        return self._by_id.get(consumer_id) if consumer_id else None

    def negotiate(
        self,
        headers: Mapping[str, str],
        query: Optional[Mapping[str, str]] = None,
    ) -> Optional[Consumer]:
        requested = header_value(headers, X_CONSUMER_ID)
        if requested is None and query:
            raw = query.get(CONSUMER_ID_QUERY_PARAM)
            requested = raw.strip() if isinstance(raw, str) and raw.strip() else None
        consumer = self.get(requested)
        if consumer is None and requested:
            log_stage(logger, "consumer", "unknown_consumer", requested=requested)
        return consumer or self.get(self.default_consumer_id)


def granted_style_ids(consumer: Optional[Consumer], catalog: StyleCatalog) -> List[str]:
    """The consumer's configured styles that the catalog actually knows."""
    if consumer is None or not consumer.image_style_ids:
        return []
    try:
        return list(catalog.bulk_load(consumer.image_style_ids))
    except CatalogUnavailable as exc:
        record_error(ErrorCode.catalog_unavailable.value, where="consumers.granted_style_ids",
                     message=str(exc), logger=logger, level="WARNING", consumer=consumer.id)
        return []


__all__ = ["ConsumerRegistry", "granted_style_ids"]
