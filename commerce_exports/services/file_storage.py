"""
Storage for generated export files.

Exports go to S3 (MinIO in development) when credentials are configured,
otherwise to ``{temp_location}/exports`` on local disk. Files are keyed
``exports/{job_id}/{file_name}``.
"""

import asyncio
import logging
import mimetypes
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import UUID

from commerce_exports.config import Settings, get_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)

LOCAL_PROVIDER = "local"
S3_PROVIDER = "s3"


@dataclass
class UploadResult:
    """Where a stored export file ended up."""

    url: str
    file_name: str
    size: int
    provider: str
    key: str


class FileStorageError(RuntimeError):
    """An export file could not be stored."""


class FileStorageService:
    """Stores export files and hands out download URLs."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    @property
    def provider(self) -> str:
        """Provider name recorded on completed jobs."""
        return S3_PROVIDER if self.settings.s3_configured else LOCAL_PROVIDER

    @asynccontextmanager
    async def get_client(self) -> "AsyncGenerator[Any, None]":
        """
        aiobotocore S3 client.

        Raises:
            FileStorageError: If S3 credentials are not configured
        """
        if not self.settings.s3_configured:
            raise FileStorageError(
                "S3 storage not configured. Set COMMERCE_EXPORTS_S3_ACCESS_KEY "
                "and COMMERCE_EXPORTS_S3_SECRET_KEY."
            )

        from aiobotocore.session import get_session

        async with get_session().create_client(
            "s3",
            endpoint_url=self.settings.s3_endpoint,
            aws_access_key_id=self.settings.s3_access_key,
            aws_secret_access_key=self.settings.s3_secret_key,
            region_name=self.settings.s3_region,
        ) as client:
            yield client

    @staticmethod
    def guess_content_type(file_name: str) -> str:
        """MIME type from the file extension, octet-stream when unknown."""
        return mimetypes.guess_type(file_name)[0] or "application/octet-stream"

    @staticmethod
    def export_key(job_id: UUID, file_name: str) -> str:
        return f"exports/{job_id}/{file_name}"

    def to_public_url(self, url: str) -> str:
        """
        Swap the internal S3 endpoint for the public one.

        Inside Docker the endpoint is a service hostname (``minio:9000``)
        that browsers cannot reach.
        """
        public = self.settings.s3_public_endpoint
        return url.replace(self.settings.s3_endpoint, public, 1) if public else url

    def object_url(self, key: str) -> str:
        """Public URL of an S3 object."""
        endpoint = self.settings.s3_public_endpoint or self.settings.s3_endpoint
        return f"{endpoint.rstrip('/')}/{self.settings.s3_bucket}/{key}"

    def key_from_url(self, url: str) -> str | None:
        """Object key for a URL built by object_url, or None for foreign URLs."""
        for endpoint in (self.settings.s3_public_endpoint, self.settings.s3_endpoint):
            if not endpoint:
                continue
            prefix = f"{endpoint.rstrip('/')}/{self.settings.s3_bucket}/"
            if url.startswith(prefix):
                return url[len(prefix):]
        return None

    def local_path(self, key: str) -> Path:
        return Path(self.settings.temp_location, key)

    async def _store_s3(self, key: str, content: bytes, content_type: str) -> str:
        try:
            async with self.get_client() as s3:
                await s3.put_object(
                    Bucket=self.settings.s3_bucket,
                    Key=key,
                    Body=content,
                    ContentType=content_type,
                )
        except Exception as e:
            logger.error(f"S3 upload failed for {key}: {e}", extra={"key": key})
            raise FileStorageError(f"Failed to upload export file {key.rsplit('/', 1)[-1]}") from e

        logger.info(f"Uploaded export file to S3: {key} ({len(content)} bytes)")
        return self.object_url(key)

    async def _store_local(self, key: str, content: bytes) -> str:
        path = self.local_path(key)
        await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(path.write_bytes, content)
        logger.info(f"Stored export file locally: {path} ({len(content)} bytes)")
        return path.as_uri()

    async def store_export(
        self,
        job_id: UUID,
        file_name: str,
        content: bytes,
        content_type: str | None = None,
    ) -> UploadResult:
        """
        Store a generated export file.

        Args:
            job_id: Export job the file belongs to
            file_name: Final file name including extension
            content: File content
            content_type: MIME type (guessed from the name if omitted)

        Returns:
            UploadResult describing the stored file

        Raises:
            FileStorageError: If the S3 upload fails
        """
        key = self.export_key(job_id, file_name)

        if self.settings.s3_configured:
            url = await self._store_s3(
                key, content, content_type or self.guess_content_type(file_name)
            )
        else:
            url = await self._store_local(key, content)

        return UploadResult(
            url=url, file_name=file_name, size=len(content), provider=self.provider, key=key
        )

    async def generate_download_url(
        self,
        s3_key: str,
        filename: str | None = None,
        expires_in: int | None = None,
    ) -> str:
        """
        Presigned GET URL for an exported object.

        Args:
            s3_key: Object key
            filename: Name offered to the browser via Content-Disposition
            expires_in: Lifetime in seconds (settings default when omitted)
        """
        params: dict[str, Any] = {"Bucket": self.settings.s3_bucket, "Key": s3_key}
        if filename:
            params["ResponseContentDisposition"] = f'attachment; filename="{filename}"'

        async with self.get_client() as s3:
            url: str = await s3.generate_presigned_url(
                "get_object",
                Params=params,
                ExpiresIn=expires_in or self.settings.s3_download_url_expiry,
            )
        return self.to_public_url(url)


_file_storage_service: FileStorageService | None = None


def get_file_storage_service() -> FileStorageService:
    """Process-wide FileStorageService (FastAPI dependency)."""
    global _file_storage_service
    if _file_storage_service is None:
        _file_storage_service = FileStorageService()
    return _file_storage_service


def reset_file_storage_service() -> None:
    """Drop the cached service (tests)."""
    global _file_storage_service
    _file_storage_service = None
