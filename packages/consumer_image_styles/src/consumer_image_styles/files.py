from __future__ import annotations

from typing import Dict, Iterable, Optional

from core_config.constants import DEFAULT_IMAGE_EXTENSIONS, DEFAULT_SCHEME

from .models import Caller, FileEntity


def entity_is_image(entity: FileEntity, extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS) -> bool:
    """A file whose extension the image toolkit can derive from."""
    if entity.entity_type != "file":
        return False
    supported = {str(e).lower().lstrip(".") for e in extensions}
    return bool(entity.extension) and entity.extension in supported


class FileRepository:
    """In-process file lookup keyed by public uuid."""

    def __init__(self, entities: Iterable[FileEntity] = ()) -> None:
        self._by_uuid: Dict[str, FileEntity] = {e.uuid: e for e in entities}

    def __len__(self) -> int:
        return len(self._by_uuid)

    def find_by_uuid(self, entity_type: str, uuid: str) -> Optional[FileEntity]:
        entity = self._by_uuid.get(uuid)
        if entity is None or entity.entity_type != entity_type:
            return None
        return entity


class FileAccessPolicy:
    """
    View access for file entities:
      - admin roles see every file
      - owners see their own files, temporary ones included
      - permanent public files are visible to everyone
      - private files need one of the file's ``view_roles``
    """

    def __init__(self, admin_roles: Iterable[str] = ("administrator",)) -> None:
        self._admin_roles = frozenset(r.lower() for r in admin_roles)

    def can_view(self, entity: FileEntity, caller: Caller) -> bool:
        roles = {r.lower() for r in caller.roles}
        if roles & self._admin_roles:
            return True
        if not caller.is_anonymous and caller.user_id == entity.owner_id:
            return True
        if not entity.status:
            return False
        if entity.scheme == DEFAULT_SCHEME:
            return True
        return bool(roles & {r.lower() for r in entity.view_roles})


__all__ = ["entity_is_image", "FileRepository", "FileAccessPolicy"]
