"""
Azure Blob Storage backends.

Provides an ObjectStore for internal keys and a MetadataStore keeping one
JSON blob per asset id. Both use azure-storage-blob with either a connection
string or account+key authentication, and support custom endpoints for
Azurite and private Azure clouds.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings

from ..asset_types import ObjectStream
from ..settings import Settings
from .base import MetadataStore, ObjectStore

__all__ = ["AzureBlobObjectStore", "AzureBlobMetadataStore", "make_blob_service_client"]

logger = logging.getLogger(__name__)


def make_blob_service_client(settings: Settings) -> BlobServiceClient:
    """
    Build a BlobServiceClient from settings.

    Handles four connection patterns:

    1. Connection string (AZURE_STORAGE_CONNECTION_STRING only):
       standard Azure cloud endpoints.
    2. Connection string + custom endpoint (+ ASSET_CDN_AZURE_BLOB_ENDPOINT):
       the account name is taken from the connection string and the endpoint
       overridden, e.g. http://localhost:10000 for Azurite.
    3. Account+key (AZURE_STORAGE_ACCOUNT + AZURE_STORAGE_KEY):
       https://{account}.blob.core.windows.net
    4. Account+key + custom endpoint: {endpoint}/{account}

    Raises:
        ValueError: If Azure authentication is not configured
    """
    timeout = settings.http_timeout_s

    if settings.az_connection_string:
        if settings.az_blob_endpoint:
            account_match = re.search(r'AccountName=([^;]+)', settings.az_connection_string)
            if account_match:
                endpoint_url = f"{settings.az_blob_endpoint.rstrip('/')}/{account_match.group(1)}"
                logger.debug(f"Azure blob client using connection string with custom endpoint: {endpoint_url}")
                return BlobServiceClient(
                    account_url=endpoint_url,
                    credential=None,
                    connection_timeout=timeout,
                )
        logger.debug("Azure blob client using connection string auth")
        return BlobServiceClient.from_connection_string(
            settings.az_connection_string,
            connection_timeout=timeout,
        )

    if settings.az_account and settings.az_key:
        if settings.az_blob_endpoint:
            account_url = f"{settings.az_blob_endpoint.rstrip('/')}/{settings.az_account}"
        else:
            account_url = f"https://{settings.az_account}.blob.core.windows.net"
        logger.debug(f"Azure blob client using account+key auth for {account_url}")
        return BlobServiceClient(
            account_url=account_url,
            credential=settings.az_key,
            connection_timeout=timeout,
        )

    raise ValueError(
        "Azure authentication not configured: need AZURE_STORAGE_CONNECTION_STRING "
        "or (AZURE_STORAGE_ACCOUNT + AZURE_STORAGE_KEY)"
    )


class AzureBlobObjectStore(ObjectStore):
    """
    ObjectStore over one blob container; internal keys are blob names.

    Blob content is streamed chunk by chunk from the download, never read
    whole.
    """

    def __init__(self, *, settings: Settings, service_client: Optional[BlobServiceClient] = None) -> None:
        self._settings = settings
        self._service = service_client or make_blob_service_client(settings)
        self._container = settings.az_object_container

    def get_by_key(self, key: str) -> Optional[ObjectStream]:
        """
        Open a streaming download of a blob.

        Returns:
            ObjectStream with the blob's content type and size, or None if
            the blob does not exist

        Raises:
            OSError: For other Azure/network errors
        """
        blob_client = self._service.get_blob_client(container=self._container, blob=key)
        try:
            downloader = blob_client.download_blob()
        except ResourceNotFoundError:
            return None
        except Exception as e:
            raise OSError(f"Azure blob download error for {key}: {e}") from e

        content_settings = getattr(downloader.properties, "content_settings", None)
        content_type = getattr(content_settings, "content_type", None) or None
        return ObjectStream(body=downloader.chunks(), content_type=content_type, size=downloader.size)


class AzureBlobMetadataStore(MetadataStore):
    """MetadataStore keeping each record as a JSON blob named by asset id."""

    def __init__(self, *, settings: Settings, service_client: Optional[BlobServiceClient] = None) -> None:
        self._settings = settings
        self._service = service_client or make_blob_service_client(settings)
        self._container = settings.az_metadata_container

    def _blob(self, asset_id: str):
        return self._service.get_blob_client(container=self._container, blob=asset_id)

    def get(self, asset_id: str) -> Optional[str]:
        try:
            return self._blob(asset_id).download_blob(encoding="utf-8").readall()
        except ResourceNotFoundError:
            return None
        except Exception as e:
            raise OSError(f"Azure metadata read error for {asset_id}: {e}") from e

    def put(self, asset_id: str, document: str) -> None:
        try:
            self._blob(asset_id).upload_blob(
                document.encode("utf-8"),
                overwrite=True,
                content_settings=ContentSettings(content_type="application/json"),
            )
        except Exception as e:
            raise OSError(f"Azure metadata write error for {asset_id}: {e}") from e
