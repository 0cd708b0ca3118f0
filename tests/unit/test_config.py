"""Unit tests for configuration module.

Tests for blogstore/config.py - Settings and storage configuration.

Run with:
    pytest tests/unit/test_config.py -v
    pytest tests/unit/test_config.py -v -m fast
"""

import pytest
from pydantic import ValidationError

from blogstore.config import MAX_UPLOAD_BYTES, Environment, Settings, get_settings
from blogstore.storage.config import StorageBackendType


def make_settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


@pytest.mark.fast
class TestEnvironment:
    """Tests for Environment enum."""

    def test_environment_values(self):
        """Test Environment enum has expected values."""
        assert Environment.DEVELOPMENT.value == "development"
        assert Environment.STAGING.value == "staging"
        assert Environment.PRODUCTION.value == "production"


@pytest.mark.fast
class TestSettings:
    """Tests for Settings class."""

    def test_defaults(self, monkeypatch):
        """Test defaults when the environment is empty."""
        for name in ("DATABASE_URL", "UPLOAD_TOKEN", "STORAGE_BACKEND", "DEBUG", "ORIGINS"):
            monkeypatch.delenv(name, raising=False)

        settings = make_settings()

        assert settings.DATABASE_URL.startswith("sqlite+aiosqlite")
        assert settings.UPLOAD_TOKEN is None
        assert settings.STORAGE_BACKEND == StorageBackendType.LOCAL
        assert settings.MAX_UPLOAD_BYTES == MAX_UPLOAD_BYTES == 10 * 1024 * 1024
        assert settings.SLUG_RETRY_LIMIT == 5
        assert settings.is_sqlite is True

    def test_reads_environment(self, monkeypatch):
        """Test values come from environment variables."""
        monkeypatch.setenv("UPLOAD_TOKEN", "from-env")
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        monkeypatch.setenv("ORIGINS", '["https://blog.example.com"]')

        settings = make_settings()

        assert settings.UPLOAD_TOKEN == "from-env"
        assert settings.STORAGE_BACKEND == StorageBackendType.MEMORY
        assert settings.ORIGINS == ["https://blog.example.com"]

    def test_invalid_database_url(self):
        """Test that unsupported database URLs are rejected."""
        with pytest.raises(ValidationError):
            make_settings(DATABASE_URL="mysql://localhost/blog")

    def test_postgres_url(self):
        settings = make_settings(DATABASE_URL="postgresql+asyncpg://u:p@db/blog")
        assert settings.is_sqlite is False

    def test_log_level_normalized(self):
        assert make_settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError):
            make_settings(LOG_LEVEL="chatty")

    @pytest.mark.parametrize("limit", [0, 51])
    def test_slug_retry_limit_bounds(self, limit):
        with pytest.raises(ValidationError):
            make_settings(SLUG_RETRY_LIMIT=limit)

    def test_is_production(self):
        assert make_settings(ENVIRONMENT=Environment.PRODUCTION).is_production is True
        assert make_settings(ENVIRONMENT=Environment.DEVELOPMENT).is_production is False


@pytest.mark.fast
class TestCorsOrigins:
    """Tests for Settings.cors_origins."""

    def test_explicit_origins(self):
        settings = make_settings(ORIGINS=["https://a.example"], DEBUG=True)
        assert settings.cors_origins == ["https://a.example"]

    def test_debug_allows_all(self):
        assert make_settings(ORIGINS=[], DEBUG=True).cors_origins == ["*"]

    def test_production_default_allows_none(self):
        assert make_settings(ORIGINS=[], DEBUG=False).cors_origins == []


@pytest.mark.fast
class TestStorageConfig:
    """Tests for Settings.get_storage_config()."""

    def test_storage_config(self):
        settings = make_settings(STORAGE_BACKEND="memory", STORAGE_ROOT="/tmp/blobs")
        config = settings.get_storage_config()
        assert config.backend == StorageBackendType.MEMORY
        assert config.root == "/tmp/blobs"


@pytest.mark.fast
class TestGetSettings:
    """Tests for get_settings caching."""

    def test_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
