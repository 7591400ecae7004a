"""Where uploaded videos and thumbnails end up: local disk or a MinIO bucket.

Both backends expose ``save(kind, filename, data, length, content_type)``,
which returns ``(reference, local_path)``. ``reference`` is the string stored
on the video row; ``local_path`` is only set when the bytes are on this
machine (ffprobe needs a file path). ``delete(reference)`` removes a
saved file again.
"""

import shutil
from pathlib import Path
from typing import BinaryIO, Optional, Tuple
from minio import Minio
from minio.error import S3Error

from vidvault.config import settings
from vidvault.logging_config import logger

VIDEO = "video"
THUMBNAIL = "thumbnail"

# multipart chunk size for streams of unknown length
PART_SIZE = 10 * 1024 * 1024


class LocalStorage:
    """Files under the configured upload directories."""

    def directory(self, kind: str) -> Path:
        return Path(settings.video_upload_dir if kind == VIDEO else settings.thumbnail_upload_dir)

    def save(
        self,
        kind: str,
        filename: str,
        data: BinaryIO,
        length: int = -1,
        content_type: Optional[str] = None,
    ) -> Tuple[str, Optional[str]]:
        target_dir = self.directory(kind)
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / filename

        with target.open("wb") as out:
            shutil.copyfileobj(data, out)

        logger.info("Saved upload to disk", kind=kind, path=str(target))
        return str(target), str(target)

    def delete(self, reference: str):
        Path(reference).unlink(missing_ok=True)
        logger.info("Removed upload from disk", path=reference)


class MinioStorage:
    """Objects in the uploads/thumbnails buckets; the client is created lazily."""

    _client: Optional[Minio] = None

    @classmethod
    def client(cls) -> Minio:
        if cls._client is None:
            endpoint = settings.minio_endpoint.replace("http://", "").replace("https://", "")
            cls._client = Minio(
                endpoint,
                access_key=settings.minio_access_key,
                secret_key=settings.minio_secret_key,
                secure=settings.minio_secure,
            )
            for bucket in (settings.storage_bucket_uploads, settings.storage_bucket_thumbnails):
                if not cls._client.bucket_exists(bucket):
                    cls._client.make_bucket(bucket)
                    logger.info("Created storage bucket", bucket=bucket)
            logger.info("MinIO client initialized", endpoint=endpoint)
        return cls._client

    def bucket(self, kind: str) -> str:
        return settings.storage_bucket_uploads if kind == VIDEO else settings.storage_bucket_thumbnails

    def save(
        self,
        kind: str,
        filename: str,
        data: BinaryIO,
        length: int = -1,
        content_type: Optional[str] = None,
    ) -> Tuple[str, Optional[str]]:
        bucket = self.bucket(kind)
        try:
            self.client().put_object(
                bucket,
                filename,
                data,
                length=length,
                part_size=PART_SIZE if length < 0 else 0,
                content_type=content_type or "application/octet-stream",
            )
        except S3Error as e:
            logger.error("Failed to upload object", bucket=bucket, object_key=filename, error=str(e))
            raise

        logger.info("Uploaded object to storage", bucket=bucket, object_key=filename, size_bytes=length)
        return f"{bucket}/{filename}", None

    def delete(self, reference: str):
        bucket, _, object_key = reference.partition("/")
        self.client().remove_object(bucket, object_key)
        logger.info("Removed object from storage", bucket=bucket, object_key=object_key)


def get_storage():
    """Backend selected by ``STORAGE_BACKEND``."""
    if settings.storage_backend == "minio":
        return MinioStorage()
    return LocalStorage()
