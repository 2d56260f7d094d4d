"""
Settings and configuration for the asset CDN.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables when the application or CLI starts.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

__all__ = ["Settings", "create_settings_from_env", "METADATA_BACKENDS", "OBJECT_BACKENDS"]

METADATA_BACKENDS = ("file", "azure")
OBJECT_BACKENDS = ("local", "azure")


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for the asset CDN.

    Service Settings:
        public_base_url: Base of the canonical asset URLs handed back on registration
        allowed_origins: CORS origins ("*" allows any)
        log_level: Root log level
        log_json: Emit JSON log lines instead of plain text

    Metadata Store Settings:
        metadata_backend: "file" (JSON documents in a directory) or "azure"
        metadata_dir: Directory for the file backend
        az_metadata_container: Blob container for the azure backend

    Object Store Settings:
        object_backend: "local" (files under a root) or "azure"
        object_root: Root directory for the local backend
        az_object_container: Blob container for the azure backend

    Azure Settings (shared by both azure backends):
        az_connection_string: Azure storage connection string
        az_account: Azure storage account name
        az_key: Azure storage account key
        az_blob_endpoint: Custom Azure blob endpoint (for Azurite/private endpoints)

    External URL Settings:
        http_timeout_s: Timeout for fetching external URLs
        http_retry: Connection-level retries for external URLs (0=no retry)
    """
    public_base_url: str = "http://localhost:8000"
    allowed_origins: Tuple[str, ...] = field(default=("*",))
    log_level: str = "INFO"
    log_json: bool = False

    metadata_backend: str = "file"
    metadata_dir: str = "./.asset-cdn/metadata"
    az_metadata_container: str = "asset-map"

    object_backend: str = "local"
    object_root: str = "./.asset-cdn/objects"
    az_object_container: str = "assets"

    az_connection_string: Optional[str] = None
    az_account: Optional[str] = None
    az_key: Optional[str] = None
    az_blob_endpoint: Optional[str] = None

    http_timeout_s: float = 30.0
    http_retry: int = 0

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.public_base_url:
            raise ValueError("public_base_url is required")

        url_pattern = r"^https?://[a-zA-Z0-9.-]+(?::[0-9]+)?(?:/.*)?$"
        if not re.match(url_pattern, self.public_base_url):
            raise ValueError(f"Invalid public_base_url format: {self.public_base_url}")

        if self.metadata_backend not in METADATA_BACKENDS:
            raise ValueError(
                f"Unknown metadata_backend: {self.metadata_backend}. "
                f"Supported values: {', '.join(METADATA_BACKENDS)}"
            )
        if self.object_backend not in OBJECT_BACKENDS:
            raise ValueError(
                f"Unknown object_backend: {self.object_backend}. "
                f"Supported values: {', '.join(OBJECT_BACKENDS)}"
            )

        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")

        if self.http_retry < 0:
            raise ValueError(f"http_retry must be non-negative, got {self.http_retry}")

        has_conn_str = bool(self.az_connection_string)
        has_account_key = bool(self.az_account and self.az_key)

        if has_conn_str and has_account_key:
            raise ValueError("Specify either az_connection_string OR (az_account + az_key), not both")

        if self.az_account and not self.az_key:
            raise ValueError("az_account specified but az_key is missing")
        if self.az_key and not self.az_account:
            raise ValueError("az_key specified but az_account is missing")

        if self.uses_azure and not (has_conn_str or has_account_key):
            raise ValueError(
                "Azure authentication not configured: need AZURE_STORAGE_CONNECTION_STRING "
                "or (AZURE_STORAGE_ACCOUNT + AZURE_STORAGE_KEY)"
            )

    @property
    def uses_azure(self) -> bool:
        return self.metadata_backend == "azure" or self.object_backend == "azure"


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        Service:
        - ASSET_CDN_PUBLIC_BASE_URL (default: http://localhost:8000)
        - ASSET_CDN_ALLOWED_ORIGINS (comma separated, default: *)
        - ASSET_CDN_LOG_LEVEL (default: INFO)
        - ASSET_CDN_LOG_JSON (default: false)

        Stores:
        - ASSET_CDN_METADATA_BACKEND (default: file)
        - ASSET_CDN_METADATA_DIR
        - ASSET_CDN_AZURE_METADATA_CONTAINER (default: asset-map)
        - ASSET_CDN_OBJECT_BACKEND (default: local)
        - ASSET_CDN_OBJECT_ROOT
        - ASSET_CDN_AZURE_OBJECT_CONTAINER (default: assets)

        Azure:
        - AZURE_STORAGE_CONNECTION_STRING (optional)
        - AZURE_STORAGE_ACCOUNT (optional)
        - AZURE_STORAGE_KEY (optional)
        - ASSET_CDN_AZURE_BLOB_ENDPOINT (optional, for Azurite/custom endpoints)

        External URLs:
        - ASSET_CDN_HTTP_TIMEOUT (default: 30.0)
        - ASSET_CDN_HTTP_RETRY (default: 0)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def str_to_bool(value: str) -> bool:
        return value.lower() in ('true', '1', 'yes', 'on')

    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        return int(value) if value else default

    defaults = Settings()
    origins = os.getenv("ASSET_CDN_ALLOWED_ORIGINS", "*")

    return Settings(
        public_base_url=os.getenv("ASSET_CDN_PUBLIC_BASE_URL", defaults.public_base_url),
        allowed_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) or ("*",),
        log_level=os.getenv("ASSET_CDN_LOG_LEVEL", defaults.log_level).upper(),
        log_json=str_to_bool(os.getenv("ASSET_CDN_LOG_JSON", "false")),
        metadata_backend=os.getenv("ASSET_CDN_METADATA_BACKEND", defaults.metadata_backend).lower(),
        metadata_dir=os.getenv("ASSET_CDN_METADATA_DIR", defaults.metadata_dir),
        az_metadata_container=os.getenv("ASSET_CDN_AZURE_METADATA_CONTAINER", defaults.az_metadata_container),
        object_backend=os.getenv("ASSET_CDN_OBJECT_BACKEND", defaults.object_backend).lower(),
        object_root=os.getenv("ASSET_CDN_OBJECT_ROOT", defaults.object_root),
        az_object_container=os.getenv("ASSET_CDN_AZURE_OBJECT_CONTAINER", defaults.az_object_container),
        az_connection_string=os.getenv("AZURE_STORAGE_CONNECTION_STRING"),
        az_account=os.getenv("AZURE_STORAGE_ACCOUNT"),
        az_key=os.getenv("AZURE_STORAGE_KEY"),
        az_blob_endpoint=os.getenv("ASSET_CDN_AZURE_BLOB_ENDPOINT"),
        http_timeout_s=get_float("ASSET_CDN_HTTP_TIMEOUT", defaults.http_timeout_s),
        http_retry=get_int("ASSET_CDN_HTTP_RETRY", defaults.http_retry),
    )
