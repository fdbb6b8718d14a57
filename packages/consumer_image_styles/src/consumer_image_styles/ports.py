"""
Collaborator interfaces consumed by the enhancer.

Hosts pass concrete implementations in explicitly; the core never looks
them up from a global container. In-process implementations live in
``catalog``, ``files`` and ``consumers``.
"""
from __future__ import annotations

from typing import Iterable, Mapping, Optional, Protocol, Sequence, runtime_checkable

from .models import Caller, Consumer, FileEntity, ImageStyle


@runtime_checkable
class StyleCatalog(Protocol):
    def bulk_load(self, ids: Iterable[str]) -> Mapping[str, ImageStyle]:
        """Return the styles among *ids* that exist; unknown ids are simply absent.

        Raises ``CatalogUnavailable`` when the catalog itself cannot be read.
        """

    def load_all(self) -> Mapping[str, ImageStyle]: ...

    def build_url(self, uri: str, style_id: str) -> str: ...

    def relations_for(self, style_id: str) -> Sequence[str]: ...


@runtime_checkable
class EntityRepository(Protocol):
    def find_by_uuid(self, entity_type: str, uuid: str) -> Optional[FileEntity]:
        """Look an entity up by its public uuid (never by storage key).

        Raises ``EntityStorageError`` on backend failure.
        """


@runtime_checkable
class AccessChecker(Protocol):
    def can_view(self, entity: FileEntity, caller: Caller) -> bool: ...


@runtime_checkable
class ConsumerNegotiator(Protocol):
    def negotiate(
        self,
        headers: Mapping[str, str],
        query: Optional[Mapping[str, str]] = None,
    ) -> Optional[Consumer]: ...


__all__ = ["StyleCatalog", "EntityRepository", "AccessChecker", "ConsumerNegotiator"]
