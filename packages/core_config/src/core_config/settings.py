from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional
from core_config.constants import DEFAULT_IMAGE_EXTENSIONS

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: str = Field(default="dev", alias="ENVIRONMENT")
    service_log_level: str = Field(default="INFO", alias="SERVICE_LOG_LEVEL")
    service_host: str = Field(default="0.0.0.0", alias="SERVICE_HOST")
    service_port: int = Field(default=8080, alias="SERVICE_PORT")

    # Registry of styles / consumers / files served by the gateway.
    # None → the registry bundled with the gateway package.
    image_styles_registry_path: Optional[str] = Field(default=None, alias="IMAGE_STYLES_REGISTRY_PATH")

    # Derivative URL rule
    public_base_url: str = Field(default="http://localhost:8080", alias="PUBLIC_BASE_URL")
    public_files_path: str = Field(default="/files", alias="PUBLIC_FILES_PATH")
    private_files_path: str = Field(default="/system/files", alias="PRIVATE_FILES_PATH")
    image_style_private_key: str = Field(default="dev-image-style-key", alias="IMAGE_STYLE_PRIVATE_KEY")
    image_style_hash_salt: str = Field(default="", alias="IMAGE_STYLE_HASH_SALT")
    # Drop the itok token from generated URLs (derivative server must not require it).
    image_style_suppress_itok: bool = Field(default=False, alias="IMAGE_STYLE_SUPPRESS_ITOK")

    # Accepts comma string via env.
    image_extensions_raw: str = Field(default=",".join(DEFAULT_IMAGE_EXTENSIONS), alias="IMAGE_EXTENSIONS")
    @property
    def image_extensions(self) -> frozenset[str]:  # noqa: D401
        """Lower-cased file extensions treated as derivable images."""
        return frozenset(x.strip().lower().lstrip(".") for x in (self.image_extensions_raw or "").split(",") if x.strip())

    file_admin_roles_raw: str = Field(default="administrator", alias="FILE_ADMIN_ROLES")
    @property
    def file_admin_roles(self) -> frozenset[str]:  # noqa: D401
        """Roles that may view every file regardless of owner or scheme."""
        return frozenset(x.strip().lower() for x in (self.file_admin_roles_raw or "").split(",") if x.strip())

    # Consumer used when the request names none (or an unknown one).
    default_consumer_id: Optional[str] = Field(default=None, alias="DEFAULT_CONSUMER_ID")

    # Check enhanced values against the output schema and log violations.
    validate_enhanced_output: bool = Field(default=False, alias="VALIDATE_ENHANCED_OUTPUT")

def get_settings() -> "Settings":
    return Settings()  # type: ignore
