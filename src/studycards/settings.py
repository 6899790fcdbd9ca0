"""Runtime settings loaded from `.env` and environment variables."""

from __future__ import annotations

import asyncio
import logging
import ssl
from functools import lru_cache
from pathlib import Path
from typing import Any

import certifi
import httpx
from pydantic import Field, PrivateAttr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from studycards.exceptions import SettingsError
from studycards.typing.enums import ImageFormat

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Package settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    project_name: str = "studycards"
    app_env: str = Field(
        default="dev",
        validation_alias="APP_ENV",
        description="Application environment, e.g. 'dev', 'prod'.",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level, e.g. 'INFO', 'DEBUG'.",
    )
    log_json: bool = Field(
        default=True,
        validation_alias="LOG_JSON",
        description="Enable JSON formatted logs.",
    )
    log_file: str | None = Field(
        default=None,
        validation_alias="LOG_FILE",
        description="File path for log output.",
    )
    http_proxy: str | None = Field(default=None, validation_alias="HTTP_PROXY", description="HTTP proxy URL.")
    https_proxy: str | None = Field(
        default=None,
        validation_alias="HTTPS_PROXY",
        description="HTTPS proxy URL.",
    )
    all_proxy: str | None = Field(default=None, validation_alias="ALL_PROXY", description="All proxy URL.")

    cert_path: str | None = Field(
        default=None,
        validation_alias="CERT_PATH",
        description="Path to SSL certificate.",
    )
    timeout: float = Field(
        default=60.0,
        validation_alias="TIMEOUT",
        description="Request timeout in seconds.",
    )
    max_connections: int = Field(
        default=10,
        validation_alias="MAX_CONNECTIONS",
        description="Maximum number of concurrent connections.",
    )

    openai_base_url: str | None = Field(
        default=None,
        validation_alias="OPENAI_BASE_URL",
        description="Base URL for an OpenAI-compatible API.",
    )
    openai_api_key: str | None = Field(
        default=None,
        validation_alias="OPENAI_API_KEY",
        description="API key for the generation service.",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        validation_alias="OPENAI_MODEL",
        description="Model used to generate flashcards.",
    )

    render_scale: float = Field(
        default=1.5,
        gt=0.0,
        validation_alias="RENDER_SCALE",
        description="Zoom factor applied when rasterizing PDF pages.",
    )
    render_image_format: ImageFormat = Field(
        default=ImageFormat.PNG,
        validation_alias="RENDER_IMAGE_FORMAT",
        description="Raster encoding for rendered pages.",
    )

    results_dir: str = Field(
        default="results",
        validation_alias="RESULTS_DIR",
        description="Directory to store generated flashcards and exports.",
    )
    _httpx_clients: dict[str, httpx.Client | httpx.AsyncClient] = PrivateAttr(default_factory=dict)

    @property
    def httpx_clients(self) -> dict[str, httpx.Client | httpx.AsyncClient]:
        """Return cached HTTPX clients."""
        return self._httpx_clients

    def get_async_httpx_client(self) -> httpx.AsyncClient:
        """Return the cached async HTTPX client, creating it on first use."""
        client = self._httpx_clients.get("async")
        if not isinstance(client, httpx.AsyncClient):
            client = httpx.AsyncClient(
                **build_httpx_client_kwargs(self),
                limits=httpx.Limits(max_connections=self.max_connections),
            )
            self._httpx_clients["async"] = client
        return client

    def close_httpx_clients(self) -> None:
        """Close cached HTTPX clients from a sync context."""
        if not self._httpx_clients:
            return

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self.aclose_httpx_clients())
            return

        logger.warning("close_httpx_clients called inside a running loop; use aclose_httpx_clients")

    async def aclose_httpx_clients(self) -> None:
        """Asynchronously close cached HTTPX clients (best effort)."""
        clients, self._httpx_clients = self._httpx_clients, {}
        for key, client in clients.items():
            try:
                if isinstance(client, httpx.AsyncClient):
                    await client.aclose()
                else:
                    client.close()
            except Exception:
                logger.warning("Failed to close HTTPX client", extra={"client_key": key})


def build_ssl_context(settings: Settings) -> ssl.SSLContext:
    """Build a strict SSL context from settings.

    Args:
        settings (Settings): Runtime settings.

    Returns:
        ssl.SSLContext: Configured TLS context.
    """
    ssl_context = ssl.create_default_context(cafile=settings.cert_path)
    if settings.cert_path is None and not _cert_store_has_ca(ssl_context):
        logger.info("Host certificate store is empty; using certifi bundle")
        ssl_context = ssl.create_default_context(cafile=_get_certifi_cafile())
    ssl_context.verify_mode = ssl.CERT_REQUIRED
    ssl_context.minimum_version = ssl.TLSVersion.TLSv1_2
    return ssl_context


def _cert_store_has_ca(ssl_context: ssl.SSLContext) -> bool:
    """Return whether the context loaded at least one CA certificate."""
    return ssl_context.cert_store_stats().get("x509_ca", 0) > 0


def _get_certifi_cafile() -> str:
    return certifi.where()


def build_httpx_client_kwargs(settings: Settings) -> dict[str, Any]:
    """Build kwargs used for `httpx.Client` and `httpx.AsyncClient`.

    Args:
        settings (Settings): Runtime settings.

    Returns:
        dict[str, Any]: Arguments for client constructors.
    """
    kwargs: dict[str, Any] = {
        "verify": build_ssl_context(settings),
        "timeout": settings.timeout,
    }

    proxy_url = settings.https_proxy or settings.http_proxy or settings.all_proxy
    if proxy_url:
        kwargs["proxy"] = proxy_url

    return kwargs


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance.

    Raises:
        SettingsError: If settings cannot be loaded or validated.

    Returns:
        Settings: The loaded settings instance.
    """
    try:
        return Settings()
    except Exception as exc:
        if _is_missing_settings_error(exc):
            try:
                ensure_env_file_exists()
                return Settings()
            except Exception as retry_exc:
                raise SettingsError(exc=retry_exc) from retry_exc
        raise SettingsError(exc=exc) from exc


def ensure_env_file_exists(
    *,
    env_path: Path = Path(".env"),
    template_path: Path = Path(".env.template"),
) -> None:
    """Create `.env` from template when missing.

    Args:
        env_path (Path): Target environment file path.
        template_path (Path): Template file path.
    """
    if env_path.exists() or not template_path.exists():
        return
    env_path.write_text(template_path.read_text(encoding="utf-8"), encoding="utf-8")
    logger.info(
        "Created environment file from template",
        extra={"env_path": str(env_path), "template_path": str(template_path)},
    )


def _is_missing_settings_error(exc: Exception) -> bool:
    """Return whether the settings failure is due to missing values.

    Args:
        exc (Exception): Caught settings initialization error.

    Returns:
        bool: True when the error represents missing settings values.
    """
    if not isinstance(exc, ValidationError):
        return False
    return any(error.get("type") == "missing" for error in exc.errors())
