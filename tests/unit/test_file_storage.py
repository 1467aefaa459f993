"""
Unit tests for file storage service.

Tests S3 uploads, local fallback and URL helpers with a mocked S3 client.
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from commerce_exports.services.file_storage import (
    FileStorageError,
    FileStorageService,
    get_file_storage_service,
    reset_file_storage_service,
)


@pytest.fixture(autouse=True)
def reset_service():
    """Reset file storage service singleton before each test."""
    reset_file_storage_service()
    yield
    reset_file_storage_service()


@pytest.fixture
def mock_settings(tmp_path):
    """Create mock settings for testing."""
    settings = MagicMock()
    settings.s3_configured = True
    settings.s3_endpoint = "http://localhost:9000"
    settings.s3_public_endpoint = None
    settings.s3_access_key = "test-access-key"
    settings.s3_secret_key = "test-secret-key"
    settings.s3_region = "us-east-1"
    settings.s3_bucket = "test-bucket"
    settings.s3_download_url_expiry = 3600
    settings.temp_location = str(tmp_path)
    return settings


@pytest.fixture
def file_storage_service(mock_settings):
    """Create file storage service with mock settings."""
    return FileStorageService(settings=mock_settings)


def mock_s3_session(mock_s3: AsyncMock) -> MagicMock:
    session = MagicMock()
    session.create_client.return_value.__aenter__ = AsyncMock(return_value=mock_s3)
    session.create_client.return_value.__aexit__ = AsyncMock(return_value=None)
    return session


@pytest.mark.unit
class TestFileStorageService:
    """Tests for FileStorageService."""

    def test_guess_content_type(self):
        assert FileStorageService.guess_content_type("export.csv") == "text/csv"
        assert FileStorageService.guess_content_type("export.json") == "application/json"
        assert (
            FileStorageService.guess_content_type("file.unknown") == "application/octet-stream"
        )

    def test_export_key(self):
        job_id = uuid4()

        assert FileStorageService.export_key(job_id, "a.csv") == f"exports/{job_id}/a.csv"

    def test_object_url_and_key_round_trip(self, file_storage_service):
        url = file_storage_service.object_url("exports/1/a.csv")

        assert url == "http://localhost:9000/test-bucket/exports/1/a.csv"
        assert file_storage_service.key_from_url(url) == "exports/1/a.csv"
        assert file_storage_service.key_from_url("https://other/x.csv") is None

    def test_object_url_prefers_public_endpoint(self, mock_settings):
        mock_settings.s3_public_endpoint = "https://files.example.com"
        service = FileStorageService(settings=mock_settings)

        url = service.object_url("exports/1/a.csv")

        assert url == "https://files.example.com/test-bucket/exports/1/a.csv"
        assert service.key_from_url(url) == "exports/1/a.csv"

    def test_to_public_url(self, mock_settings):
        mock_settings.s3_public_endpoint = "https://files.example.com"
        service = FileStorageService(settings=mock_settings)

        assert (
            service.to_public_url("http://localhost:9000/test-bucket/k?sig=1")
            == "https://files.example.com/test-bucket/k?sig=1"
        )

    @pytest.mark.asyncio
    async def test_store_export_uploads_to_s3(self, file_storage_service):
        mock_s3 = AsyncMock()
        job_id = uuid4()

        with patch(
            "aiobotocore.session.get_session", return_value=mock_s3_session(mock_s3)
        ):
            result = await file_storage_service.store_export(
                job_id, "products.csv", b"ID\n1\n", "text/csv; charset=utf-8"
            )

        mock_s3.put_object.assert_awaited_once_with(
            Bucket="test-bucket",
            Key=f"exports/{job_id}/products.csv",
            Body=b"ID\n1\n",
            ContentType="text/csv; charset=utf-8",
        )
        assert result.provider == "s3"
        assert result.size == 5
        assert result.url == f"http://localhost:9000/test-bucket/exports/{job_id}/products.csv"

    @pytest.mark.asyncio
    async def test_store_export_raises_when_upload_fails(self, file_storage_service):
        mock_s3 = AsyncMock()
        mock_s3.put_object.side_effect = Exception("Access Denied")

        with patch(
            "aiobotocore.session.get_session", return_value=mock_s3_session(mock_s3)
        ):
            with pytest.raises(FileStorageError):
                await file_storage_service.store_export(uuid4(), "a.csv", b"x")

    @pytest.mark.asyncio
    async def test_store_export_writes_locally_without_s3(self, mock_settings, tmp_path):
        mock_settings.s3_configured = False
        service = FileStorageService(settings=mock_settings)
        job_id = uuid4()

        result = await service.store_export(job_id, "users.json", b"[]")

        path = tmp_path / "exports" / str(job_id) / "users.json"
        assert path.read_bytes() == b"[]"
        assert result.provider == "local"
        assert result.url == path.as_uri()
        assert result.size == 2

    @pytest.mark.asyncio
    async def test_generate_download_url(self, file_storage_service):
        mock_s3 = AsyncMock()
        mock_s3.generate_presigned_url = AsyncMock(
            return_value="http://localhost:9000/test-bucket/exports/a.csv?sig=abc"
        )

        with patch(
            "aiobotocore.session.get_session", return_value=mock_s3_session(mock_s3)
        ):
            url = await file_storage_service.generate_download_url(
                "exports/a.csv", filename="a.csv"
            )

        assert url.endswith("sig=abc")
        params = mock_s3.generate_presigned_url.call_args.kwargs["Params"]
        assert params["ResponseContentDisposition"] == 'attachment; filename="a.csv"'
        assert mock_s3.generate_presigned_url.call_args.kwargs["ExpiresIn"] == 3600

    @pytest.mark.asyncio
    async def test_get_client_requires_configuration(self, mock_settings):
        mock_settings.s3_configured = False
        service = FileStorageService(settings=mock_settings)

        with pytest.raises(RuntimeError, match="not configured"):
            async with service.get_client():
                pass

    def test_singleton(self):
        assert get_file_storage_service() is get_file_storage_service()
