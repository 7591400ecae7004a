"""Video record operations."""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vidvault.config import settings
from vidvault.db import Database
from vidvault.errors import BadRequestError, NotFoundError
from vidvault.logging_config import logger
from vidvault.models import Video, VideoStatus
from vidvault.pagination import paginate
from vidvault.video.lifecycle import can_transition


def _as_str(value: Any) -> str:
    """Anything that is not already a string (e.g. a raw upload handle) becomes ''."""
    return value if isinstance(value, str) else ""


async def create_video(
    db: AsyncSession,
    user_id: int,
    title: str,
    url: Any,
    description: Optional[str] = None,
    thumbnail: Any = None,
    metadata: Optional[dict] = None,
) -> Video:
    """Persist a new video for ``user_id``.

    The status is always UPLOADED; callers cannot choose it.
    """
    video = Video(
        user_id=user_id,
        title=title,
        description=description,
        url=_as_str(url),
        thumbnail=_as_str(thumbnail),
        status=VideoStatus.UPLOADED,
        video_metadata=metadata or {},
    )
    db.add(video)
    await db.commit()
    await db.refresh(video, attribute_names=["user"])

    logger.info("Video created", video_id=str(video.id), user_id=user_id, url=video.url)
    return video


async def list_videos_paginated(
    database: Database,
    page: int = 1,
    limit: int = 10,
    status: Optional[VideoStatus] = None,
) -> dict:
    """Newest-first page of videos, optionally restricted to one status."""
    stmt = select(Video).options(selectinload(Video.user))
    if status is not None:
        stmt = stmt.where(Video.status == status)
    stmt = stmt.order_by(Video.created_at.desc(), Video.id)

    return await paginate(database, stmt, page, limit)


async def update_status(
    db: AsyncSession,
    video_id: UUID,
    status: VideoStatus,
    metadata: Optional[dict] = None,
) -> Video:
    """Move a video to ``status`` and shallow-merge ``metadata`` into its metadata.

    Keys in ``metadata`` overwrite stored keys of the same name; all other
    stored keys are kept.
    """
    result = await db.execute(
        select(Video).options(selectinload(Video.user)).where(Video.id == video_id)
    )
    video = result.scalar_one_or_none()
    if video is None:
        raise NotFoundError("Video not found")

    previous = video.status
    if settings.enforce_status_transitions and not can_transition(previous, status):
        raise BadRequestError(
            f"Invalid status transition from {previous.value} to {status.value}"
        )

    video.status = status
    if metadata:
        # New dict so the JSON column registers the change
        video.video_metadata = {**(video.video_metadata or {}), **metadata}

    await db.commit()

    logger.info(
        "Video status updated",
        video_id=str(video.id),
        previous=previous.value,
        status=status.value,
        metadata_keys=sorted(metadata) if metadata else [],
    )
    return video
