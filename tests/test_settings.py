"""
Tests for settings module.

Tests settings validation and environment variable loading.
"""
from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from asset_cdn.settings import Settings, create_settings_from_env


class TestSettings:
    """Test Settings dataclass validation."""

    def test_defaults(self):
        settings = Settings()
        assert settings.public_base_url == "http://localhost:8000"
        assert settings.allowed_origins == ("*",)
        assert settings.metadata_backend == "file"
        assert settings.object_backend == "local"
        assert settings.http_timeout_s == 30.0
        assert settings.http_retry == 0
        assert settings.uses_azure is False

    @pytest.mark.parametrize("url", [
        "http://localhost:8000",
        "https://cdn.example.com",
        "https://cdn.example.com/prefix",
    ])
    def test_valid_public_base_urls(self, url):
        assert Settings(public_base_url=url).public_base_url == url

    @pytest.mark.parametrize("url", ["cdn.example.com", "ftp://cdn.example.com", "not a url"])
    def test_invalid_public_base_url(self, url):
        with pytest.raises(ValueError, match="Invalid public_base_url format"):
            Settings(public_base_url=url)

    def test_empty_public_base_url(self):
        with pytest.raises(ValueError, match="public_base_url is required"):
            Settings(public_base_url="")

    def test_unknown_backends(self):
        with pytest.raises(ValueError, match="Unknown metadata_backend"):
            Settings(metadata_backend="redis")
        with pytest.raises(ValueError, match="Unknown object_backend"):
            Settings(object_backend="s3")

    def test_zero_timeout_raises(self):
        with pytest.raises(ValueError, match="http_timeout_s must be positive"):
            Settings(http_timeout_s=0.0)

    def test_negative_retry_raises(self):
        with pytest.raises(ValueError, match="http_retry must be non-negative"):
            Settings(http_retry=-1)

    def test_azure_backend_requires_auth(self):
        with pytest.raises(ValueError, match="Azure authentication not configured"):
            Settings(object_backend="azure")

    def test_azure_backend_with_account_key(self):
        settings = Settings(object_backend="azure", az_account="acct", az_key="key==")
        assert settings.uses_azure is True

    def test_azure_auth_both_methods_raises(self):
        with pytest.raises(ValueError, match="Specify either az_connection_string OR"):
            Settings(
                az_connection_string="DefaultEndpointsProtocol=https;AccountName=test;AccountKey=key",
                az_account="testaccount",
                az_key="testkey",
            )

    def test_azure_account_without_key_raises(self):
        with pytest.raises(ValueError, match="az_account specified but az_key is missing"):
            Settings(az_account="testaccount")

    def test_azure_key_without_account_raises(self):
        with pytest.raises(ValueError, match="az_key specified but az_account is missing"):
            Settings(az_key="testkey")


class TestCreateSettingsFromEnv:
    """Test creating settings from environment variables."""

    def test_empty_env_gives_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            assert create_settings_from_env() == Settings()

    def test_full_env(self):
        env = {
            "ASSET_CDN_PUBLIC_BASE_URL": "https://cdn.example.com",
            "ASSET_CDN_ALLOWED_ORIGINS": "https://a.example.com, https://b.example.com",
            "ASSET_CDN_LOG_LEVEL": "debug",
            "ASSET_CDN_LOG_JSON": "true",
            "ASSET_CDN_METADATA_BACKEND": "Azure",
            "ASSET_CDN_AZURE_METADATA_CONTAINER": "meta",
            "ASSET_CDN_OBJECT_BACKEND": "azure",
            "ASSET_CDN_AZURE_OBJECT_CONTAINER": "blobs",
            "AZURE_STORAGE_CONNECTION_STRING": "DefaultEndpointsProtocol=https;AccountName=test;AccountKey=key",
            "ASSET_CDN_AZURE_BLOB_ENDPOINT": "http://localhost:10000",
            "ASSET_CDN_HTTP_TIMEOUT": "12.5",
            "ASSET_CDN_HTTP_RETRY": "2",
        }

        with patch.dict(os.environ, env, clear=True):
            settings = create_settings_from_env()

        assert settings.public_base_url == "https://cdn.example.com"
        assert settings.allowed_origins == ("https://a.example.com", "https://b.example.com")
        assert settings.log_level == "DEBUG"
        assert settings.log_json is True
        assert settings.metadata_backend == "azure"
        assert settings.az_metadata_container == "meta"
        assert settings.az_object_container == "blobs"
        assert settings.az_blob_endpoint == "http://localhost:10000"
        assert settings.http_timeout_s == 12.5
        assert settings.http_retry == 2

    def test_boolean_parsing(self):
        for value, expected in [("1", True), ("yes", True), ("on", True), ("false", False), ("nope", False)]:
            with patch.dict(os.environ, {"ASSET_CDN_LOG_JSON": value}, clear=True):
                assert create_settings_from_env().log_json is expected

    def test_invalid_env_raises(self):
        with patch.dict(os.environ, {"ASSET_CDN_METADATA_BACKEND": "azure"}, clear=True):
            with pytest.raises(ValueError, match="Azure authentication not configured"):
                create_settings_from_env()

    def test_fresh_instance_each_call(self):
        with patch.dict(os.environ, {"ASSET_CDN_HTTP_RETRY": "1"}, clear=True):
            first = create_settings_from_env()
        with patch.dict(os.environ, {"ASSET_CDN_HTTP_RETRY": "4"}, clear=True):
            second = create_settings_from_env()

        assert first.http_retry == 1
        assert second.http_retry == 4
