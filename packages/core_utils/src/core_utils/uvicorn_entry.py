from typing import Optional
import uvicorn

from core_config import get_settings


def run(
    app_path: str,
    port: Optional[int] = None,
    *,
    host: Optional[str] = None,
    reload: bool = False,
    access_log: bool = False,
) -> None:
    """Serve *app_path*; host, port and log level default to the service settings."""
    settings = get_settings()
    uvicorn.run(
        app_path,
        host=host or settings.service_host,
        port=port or settings.service_port,
        reload=reload,
        log_level=settings.service_log_level.lower(),
        access_log=access_log,
        # Request logs come from core_logging's middleware as JSON.
        log_config=None,
    )

__all__ = ["run"]
