"""Unit tests for application settings."""

import pytest

from commerce_exports.config import Settings, clear_settings_cache, get_settings
from commerce_exports.models.enums import ColumnPolicy


@pytest.fixture(autouse=True)
def fresh_settings():
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.mark.unit
class TestSettings:
    """Tests for environment-driven configuration."""

    def test_export_defaults(self, monkeypatch):
        monkeypatch.delenv("COMMERCE_EXPORTS_EXPORT_EXECUTION_MODE", raising=False)
        settings = Settings(_env_file=None)

        assert settings.export_execution_mode == "direct"
        assert settings.export_queue_name == "export"
        assert settings.export_default_page_size == 500
        assert settings.export_unknown_column_policy == ColumnPolicy.USE_REQUESTED

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("COMMERCE_EXPORTS_EXPORT_EXECUTION_MODE", "queue")
        monkeypatch.setenv("COMMERCE_EXPORTS_EXPORT_UNKNOWN_COLUMN_POLICY", "reject-unknown")
        monkeypatch.setenv("COMMERCE_EXPORTS_EXPORT_QUEUE_URL", "redis://broker:6379/3")

        settings = Settings(_env_file=None)

        assert settings.export_execution_mode == "queue"
        assert settings.export_unknown_column_policy == ColumnPolicy.REJECT_UNKNOWN
        assert settings.export_broker_url == "redis://broker:6379/3"

    def test_broker_url_defaults_to_redis_url(self, monkeypatch):
        monkeypatch.delenv("COMMERCE_EXPORTS_EXPORT_QUEUE_URL", raising=False)
        monkeypatch.setenv("COMMERCE_EXPORTS_REDIS_URL", "redis://cache:6379/0")

        settings = Settings(_env_file=None)

        assert settings.export_broker_url == "redis://cache:6379/0"

    def test_s3_configured_requires_both_keys(self):
        assert not Settings(_env_file=None, s3_access_key="a").s3_configured
        assert Settings(_env_file=None, s3_access_key="a", s3_secret_key="b").s3_configured

    def test_cors_origins_list(self):
        settings = Settings(_env_file=None, cors_origins="http://a, http://b,")

        assert settings.cors_origins_list == ["http://a", "http://b"]

    def test_validate_paths_creates_export_directory(self, tmp_path):
        settings = Settings(_env_file=None, temp_location=str(tmp_path / "store"))

        settings.validate_paths()

        assert (tmp_path / "store" / "exports").is_dir()

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
