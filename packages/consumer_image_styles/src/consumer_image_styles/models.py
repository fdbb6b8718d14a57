from __future__ import annotations

from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple
import posixpath

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from core_config.constants import DEFAULT_SCHEME, DERIVATIVE_LINK_REL

# The untransformed field payload: {"type": ..., "id": ..., "meta": {...}}
FieldValue = Dict[str, Any]

_TRUTHY = {"1", "true", "yes", "on"}


def _is_enabled(entry: Any) -> bool:
    # Checkbox widgets post 0 / "0" for unticked options.
    return bool(entry) and entry != "0"


class StyleSettings(BaseModel):
    """Per-field refinement settings (the ``styles`` block of the enhancer settings)."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    refine: bool = False
    # Ordered; disabled entries are kept as "" and dropped by the resolver.
    custom_selection: Tuple[str, ...] = ()

    @field_validator("refine", mode="before")
    @classmethod
    def _coerce_refine(cls, v: Any) -> bool:
        if isinstance(v, bool):
            return v
        if isinstance(v, (int, float)):
            return bool(v)
        if isinstance(v, str):
            return v.strip().lower() in _TRUTHY
        return False

    @field_validator("custom_selection", mode="before")
    @classmethod
    def _coerce_selection(cls, v: Any) -> Tuple[str, ...]:
        if v is None:
            return ()
        if isinstance(v, Mapping):
            # {"thumbnail": "thumbnail", "large": 0}
            v = list(v.values())
        elif isinstance(v, str):
            v = [v]
        elif not isinstance(v, (list, tuple)):
            return ()
        return tuple(str(x) if _is_enabled(x) else "" for x in v)


class FieldConfiguration(BaseModel):
    """Everything the enhancer needs to know about one field, fixed at construction."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    granted_style_ids: FrozenSet[str] = Field(default_factory=frozenset, alias="consumer_image_style_ids")
    styles: StyleSettings = Field(default_factory=StyleSettings)

    @field_validator("granted_style_ids", mode="before")
    @classmethod
    def _coerce_granted(cls, v: Any) -> FrozenSet[str]:
        if v is None:
            return frozenset()
        if isinstance(v, str):
            return frozenset([v]) if v else frozenset()
        if isinstance(v, Mapping):
            v = v.keys()
        if not isinstance(v, Iterable):
            return frozenset()
        return frozenset(str(x) for x in v if x)

    @field_validator("styles", mode="before")
    @classmethod
    def _coerce_styles(cls, v: Any) -> Any:
        if isinstance(v, (Mapping, StyleSettings)):
            return v
        return {}

    @property
    def refine(self) -> bool:
        return self.styles.refine

    @property
    def custom_selection(self) -> Tuple[str, ...]:
        return self.styles.custom_selection

    @classmethod
    def from_mapping(
        cls,
        configuration: Any,
        granted_style_ids: Optional[Iterable[str]] = None,
    ) -> "FieldConfiguration":
        """
        Build from raw enhancer settings. Never raises: anything that does not
        validate degrades to "no refinement" over the granted styles.
        """
        data: Dict[str, Any] = dict(configuration) if isinstance(configuration, Mapping) else {}
        if granted_style_ids is not None:
            data["consumer_image_style_ids"] = list(granted_style_ids)
        try:
            return cls.model_validate(data)
        except ValidationError:
            return cls.model_validate({"consumer_image_style_ids": data.get("consumer_image_style_ids")})


class ImageStyle(BaseModel):
    """A named derivative definition as held by the style catalog."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    label: str = ""
    # Target format of the derivative (e.g. "webp"); None keeps the source format.
    derivative_extension: Optional[str] = None
    relations: Tuple[str, ...] = (DERIVATIVE_LINK_REL,)

    @field_validator("derivative_extension", mode="before")
    @classmethod
    def _normalise_extension(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        ext = str(v).strip().lower().lstrip(".")
        return ext or None

    @model_validator(mode="after")
    def _default_label(self):
        if not self.label:
            object.__setattr__(self, "label", self.id)
        return self


class FileEntity(BaseModel):
    """A stored file record as returned by the entity repository."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    uuid: str
    entity_type: str = "file"
    filename: str = ""
    uri: str
    filemime: Optional[str] = None
    owner_id: str = ""
    # True for permanent files, False for temporary uploads.
    status: bool = True
    view_roles: Tuple[str, ...] = ()

    @property
    def scheme(self) -> str:
        return self.uri.split("://", 1)[0].lower() if "://" in self.uri else DEFAULT_SCHEME

    @property
    def extension(self) -> str:
        name = self.filename or self.uri.split("://", 1)[-1]
        return posixpath.splitext(name)[1].lower().lstrip(".")


class ImageResource(BaseModel):
    """A file that passed the image gate; only ``resolve_image_resource`` builds these."""
    model_config = ConfigDict(frozen=True)

    uuid: str
    uri: str


class Caller(BaseModel):
    """The user on whose behalf the response is being serialised."""
    model_config = ConfigDict(frozen=True)

    user_id: str = ""
    roles: Tuple[str, ...] = ()

    @property
    def is_anonymous(self) -> bool:
        return not self.user_id

    @classmethod
    def from_identity(cls, identity: Mapping[str, Any]) -> "Caller":
        return cls(
            user_id=str(identity.get("user_id") or ""),
            roles=tuple(identity.get("roles") or ()),
        )


class Consumer(BaseModel):
    """A registered API client and the styles it is allowed to receive."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(min_length=1)
    label: str = ""
    image_style_ids: Tuple[str, ...] = ()


class DerivativeLink(BaseModel):
    model_config = ConfigDict(frozen=True)

    style_id: str
    href: str
    rel: Tuple[str, ...] = ()

    def as_link_object(self) -> Dict[str, Any]:
        """Render as a JSON:API link object: ``{"href": ..., "meta": {"rel": [...]}}``."""
        return {"href": self.href, "meta": {"rel": list(self.rel)}}


__all__ = [
    "FieldValue",
    "StyleSettings",
    "FieldConfiguration",
    "ImageStyle",
    "FileEntity",
    "ImageResource",
    "Caller",
    "Consumer",
    "DerivativeLink",
]
