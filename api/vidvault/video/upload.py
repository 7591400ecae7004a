"""Upload adapter for video creation.

Receives the multipart form, validates the files, writes them to the
configured storage backend and hands the route a ``VideoCreate`` whose
``url`` and ``thumbnail`` are plain strings.
"""

import asyncio
import json
import os
from pathlib import Path
from typing import List, Optional, Tuple
from uuid import uuid4

from fastapi import File, Form, UploadFile
from pydantic import BaseModel, Field

from vidvault.config import settings
from vidvault.errors import BadRequestError
from vidvault.logging_config import logger
from vidvault.media import extract_video_metadata
from vidvault.storage import THUMBNAIL, VIDEO, get_storage


class VideoCreate(BaseModel):
    """Video fields after uploads have been resolved to storage references."""

    title: str
    description: Optional[str] = None
    url: str
    thumbnail: Optional[str] = None
    metadata: dict = Field(default_factory=dict)


def _file_size(upload: UploadFile) -> int:
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


def _has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


def _parse_metadata(raw: Optional[str]) -> dict:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        raise BadRequestError("metadata must be a JSON object")
    if not isinstance(parsed, dict):
        raise BadRequestError("metadata must be a JSON object")
    return parsed


async def store_upload(upload: UploadFile, kind: str) -> Tuple[str, Optional[str]]:
    """Store an upload under a random name with the configured backend.

    Returns:
        (reference, local_path) where local_path is None for remote storage
    """
    extension = Path(upload.filename or "").suffix.lower()
    filename = f"{uuid4()}{extension}"
    return await asyncio.to_thread(
        get_storage().save,
        kind,
        filename,
        upload.file,
        _file_size(upload),
        upload.content_type,
    )


async def discard_uploads(references: List[str]):
    """Best-effort removal of files stored for a request that then failed."""
    storage = get_storage()
    for reference in references:
        try:
            await asyncio.to_thread(storage.delete, reference)
        except Exception as e:
            logger.error("Failed to remove orphaned upload", reference=reference, error=str(e))


async def resolve_video_upload(
    title: str = Form(..., min_length=1, max_length=255),
    description: Optional[str] = Form(None),
    metadata: Optional[str] = Form(None, description="JSON object"),
    url: Optional[str] = Form(None, description="Pre-resolved video URL"),
    thumbnail_url: Optional[str] = Form(None, description="Pre-resolved thumbnail URL"),
    video: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
) -> VideoCreate:
    """FastAPI dependency turning the multipart form into a ``VideoCreate``.

    Both files are validated before anything is written; if a later step
    fails, whatever was already stored is removed again.
    """
    extra_metadata = _parse_metadata(metadata)
    has_video = _has_file(video)
    has_thumbnail = _has_file(thumbnail)

    if has_video:
        if video.content_type not in settings.allowed_video_mimes:
            raise BadRequestError(
                f"Invalid video file type. Allowed types: {', '.join(settings.allowed_video_mimes)}"
            )
        size = _file_size(video)
        if size > settings.max_video_size_bytes:
            raise BadRequestError(
                f"Video size exceeds maximum allowed size of {settings.max_video_size_bytes // (1024 ** 2)} MB"
            )
    elif not url:
        raise BadRequestError("Video file is required")

    if has_thumbnail and thumbnail.content_type not in settings.allowed_thumbnail_mimes:
        raise BadRequestError(
            f"Invalid thumbnail file type. Allowed types: {', '.join(settings.allowed_thumbnail_mimes)}"
        )

    video_ref, thumbnail_ref, local_path = url, thumbnail_url, None
    stored = []
    try:
        if has_video:
            video_ref, local_path = await store_upload(video, VIDEO)
            stored.append(video_ref)
            logger.info("Stored video upload", reference=video_ref, size_bytes=size, mime_type=video.content_type)

        if has_thumbnail:
            thumbnail_ref, _ = await store_upload(thumbnail, THUMBNAIL)
            stored.append(thumbnail_ref)

        if settings.extract_video_metadata and local_path:
            extra_metadata["probe"] = await asyncio.to_thread(extract_video_metadata, local_path)
    except Exception:
        await discard_uploads(stored)
        raise

    return VideoCreate(
        title=title,
        description=description,
        url=video_ref,
        thumbnail=thumbnail_ref,
        metadata=extra_metadata,
    )
