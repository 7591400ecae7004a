"""Video upload, listing and status routes."""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import AliasChoices, Field
from sqlalchemy.ext.asyncio import AsyncSession

from vidvault.auth.middleware import AuthUser, get_current_user
from vidvault.config import settings
from vidvault.db import Database, get_database, get_db
from vidvault.models import Video, VideoStatus
from vidvault.pagination import Page
from vidvault.requestlog import log_request
from vidvault.schemas import CamelModel
from vidvault.video import service
from vidvault.video.upload import VideoCreate, resolve_video_upload

router = APIRouter(dependencies=[Depends(log_request)])


# Request/Response Models
class OwnerProfile(CamelModel):
    """Reduced profile of the video owner."""
    id: int
    email: str
    first_name: str
    last_name: str
    photo: Optional[str] = None


class VideoResponse(CamelModel):
    """Video response model."""
    id: UUID
    title: str
    description: Optional[str] = None
    url: str
    thumbnail: Optional[str] = None
    status: VideoStatus
    # ORM attribute is video_metadata; Base.metadata shadows "metadata" on the model
    video_metadata: Optional[Dict[str, Any]] = Field(
        None,
        validation_alias=AliasChoices("video_metadata", "metadata"),
        serialization_alias="metadata",
    )
    user_id: int
    created_at: datetime
    updated_at: datetime
    user: Optional[OwnerProfile] = None


class VideoStatusUpdateRequest(CamelModel):
    """New status and optional metadata to merge."""
    status: VideoStatus
    metadata: Optional[Dict[str, Any]] = None


def to_video_response(video: Video) -> VideoResponse:
    return VideoResponse.model_validate(video)


@router.post("", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
async def upload_video(
    user: AuthUser = Depends(get_current_user),
    data: VideoCreate = Depends(resolve_video_upload),
    db: AsyncSession = Depends(get_db),
) -> VideoResponse:
    """
    Create a video record from an uploaded file or a pre-resolved URL.

    The record always starts in UPLOADED status.
    """
    video = await service.create_video(
        db,
        user_id=user.id,
        title=data.title,
        url=data.url,
        description=data.description,
        thumbnail=data.thumbnail,
        metadata=data.metadata,
    )
    return to_video_response(video)


@router.get("", response_model=Page[VideoResponse])
async def list_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    status: Optional[VideoStatus] = Query(None, description="Filter by processing status"),
    database: Database = Depends(get_database),
) -> Page[VideoResponse]:
    """Paginated list of videos, newest first."""
    result = await service.list_videos_paginated(database, page, limit, status)
    return Page[VideoResponse](
        data=[to_video_response(v) for v in result["data"]],
        total=result["total"],
        page=result["page"],
        limit=result["limit"],
        total_pages=result["total_pages"],
    )


@router.patch("/{video_id}/status", response_model=VideoResponse)
async def update_video_status(
    video_id: UUID,
    body: VideoStatusUpdateRequest,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> VideoResponse:
    """Update video processing status, merging any supplied metadata."""
    video = await service.update_status(db, video_id, body.status, body.metadata)
    return to_video_response(video)
