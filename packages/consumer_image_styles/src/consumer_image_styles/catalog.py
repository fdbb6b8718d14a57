"""
Style catalog and the derivative URL rule.

A derivative of ``public://2024-05/cat.jpg`` under style ``thumbnail`` lives at

    <base_url><public_files_path>/styles/thumbnail/public/2024-05/cat.jpg?itok=<token>

Non-public schemes are served from ``private_files_path``. When a style
converts the format (``derivative_extension``) the new extension is appended
to the source name (``cat.jpg.webp``). ``itok`` is a short HMAC over the
style id and the (extension-adjusted) source uri, so derivative servers can
refuse to generate images for URLs nobody handed out.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import posixpath
from typing import Dict, Iterable, Optional, Tuple
from urllib.parse import quote, urlencode

from core_config import Settings
from core_config.constants import DEFAULT_SCHEME, ITOK_LENGTH, ITOK_QUERY_PARAM, STYLES_DIRECTORY

from .models import ImageStyle


def split_uri(uri: str) -> Tuple[str, str]:
    """``"private://a/b.png"`` → ``("private", "a/b.png")``; bare paths are public."""
    if "://" in uri:
        scheme, target = uri.split("://", 1)
        return (scheme.lower() or DEFAULT_SCHEME), target.lstrip("/")
    return DEFAULT_SCHEME, uri.lstrip("/")


def _with_extension(path: str, extension: Optional[str]) -> str:
    if not extension:
        return path
    current = posixpath.splitext(path)[1].lower().lstrip(".")
    return path if current == extension else f"{path}.{extension}"


def _norm_path(p: str) -> str:
    p = (p or "").strip("/")
    return f"/{p}" if p else ""


class DerivativeUrlBuilder:
    def __init__(
        self,
        base_url: str,
        *,
        public_files_path: str = "/files",
        private_files_path: str = "/system/files",
        private_key: str = "",
        hash_salt: str = "",
        suppress_token: bool = False,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.public_files_path = _norm_path(public_files_path)
        self.private_files_path = _norm_path(private_files_path)
        self._key = f"{private_key}{hash_salt}".encode("utf-8")
        self.suppress_token = suppress_token

    @classmethod
    def from_settings(cls, settings: Settings) -> "DerivativeUrlBuilder":
        return cls(
            settings.public_base_url,
            public_files_path=settings.public_files_path,
            private_files_path=settings.private_files_path,
            private_key=settings.image_style_private_key,
            hash_salt=settings.image_style_hash_salt,
            suppress_token=settings.image_style_suppress_itok,
        )

    def derivative_path(self, uri: str, style_id: str, extension: Optional[str] = None) -> str:
        scheme, target = split_uri(uri)
        return f"{STYLES_DIRECTORY}/{style_id}/{scheme}/{_with_extension(target, extension)}"

    def path_token(self, uri: str, style_id: str, extension: Optional[str] = None) -> str:
        message = f"{style_id}:{_with_extension(uri, extension)}".encode("utf-8")
        digest = hmac.new(self._key, message, hashlib.sha256).digest()
        return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")[:ITOK_LENGTH]

    def build(self, uri: str, style_id: str, extension: Optional[str] = None) -> str:
        scheme, _ = split_uri(uri)
        root = self.public_files_path if scheme == DEFAULT_SCHEME else self.private_files_path
        path = quote(self.derivative_path(uri, style_id, extension), safe="/")
        url = f"{self.base_url}{root}/{path}"
        if self.suppress_token:
            return url
        return f"{url}?{urlencode({ITOK_QUERY_PARAM: self.path_token(uri, style_id, extension)})}"


class StyleRegistry:
    """In-process style catalog. Lookups are read-only after construction."""

    def __init__(self, styles: Iterable[ImageStyle] = (), url_builder: Optional[DerivativeUrlBuilder] = None) -> None:
        self._styles: Dict[str, ImageStyle] = {s.id: s for s in styles}
        self._url_builder = url_builder or DerivativeUrlBuilder("")

    def __len__(self) -> int:
        return len(self._styles)

    def bulk_load(self, ids: Iterable[str]) -> Dict[str, ImageStyle]:
        return {sid: self._styles[sid] for sid in sorted(set(ids)) if sid in self._styles}

    def load_all(self) -> Dict[str, ImageStyle]:
        return {sid: self._styles[sid] for sid in sorted(self._styles)}

    def build_url(self, uri: str, style_id: str) -> str:
        style = self._styles.get(style_id)
        return self._url_builder.build(uri, style_id, style.derivative_extension if style else None)

    def relations_for(self, style_id: str) -> Tuple[str, ...]:
        style = self._styles.get(style_id)
        return style.relations if style else ()


__all__ = ["split_uri", "DerivativeUrlBuilder", "StyleRegistry"]
