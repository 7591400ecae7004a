from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import select

from vidvault.auth.crypto import hash_password
from vidvault.config import settings
from vidvault.errors import BadRequestError, NotFoundError
from vidvault.models import User, Video, VideoStatus
from vidvault.video import service
from vidvault.video.lifecycle import can_transition


@pytest.fixture
async def owner(database):
    async with database.session() as db:
        user = User(
            email="owner@example.com",
            first_name="Olive",
            last_name="Owner",
            password=hash_password("irrelevant"),
            photo="https://cdn.example.com/olive.png",
        )
        db.add(user)
        await db.commit()
        return user


async def add_videos(database, owner, n, start=None, status=VideoStatus.UPLOADED):
    start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
    async with database.session() as db:
        videos = [
            Video(
                user_id=owner.id,
                title=f"video {i + 1}",
                url=f"/uploads/videos/{i + 1}.mp4",
                status=status,
                created_at=start + timedelta(minutes=i),
            )
            for i in range(n)
        ]
        db.add_all(videos)
        await db.commit()
        return videos


async def test_create_video_is_always_uploaded_with_owner_profile(database, owner):
    async with database.session() as db:
        video = await service.create_video(
            db,
            user_id=owner.id,
            title="Holiday",
            url="/uploads/videos/holiday.mp4",
            thumbnail="/uploads/thumbnails/holiday.jpg",
            metadata={"source": "phone"},
        )

    assert video.status == VideoStatus.UPLOADED
    assert video.url == "/uploads/videos/holiday.mp4"
    assert video.video_metadata == {"source": "phone"}
    assert video.user.email == "owner@example.com"
    assert video.user.photo == "https://cdn.example.com/olive.png"

    async with database.session() as db:
        stored = (await db.execute(select(Video))).scalar_one()
    assert stored.status == VideoStatus.UPLOADED


async def test_create_video_coerces_non_string_references(database, owner):
    class UploadHandle:
        path = "/tmp/raw"

    async with database.session() as db:
        video = await service.create_video(db, user_id=owner.id, title="raw", url=UploadHandle(), thumbnail=None)

    assert video.url == ""
    assert video.thumbnail == ""


async def test_list_videos_second_page_is_newest_first(database, owner):
    await add_videos(database, owner, 25)

    result = await service.list_videos_paginated(database, page=2, limit=10)

    assert result["total"] == 25
    assert result["page"] == 2
    assert result["limit"] == 10
    assert result["total_pages"] == 3
    # newest is "video 25"; items 11..20 of the newest-first order are videos 15..6
    assert [v.title for v in result["data"]] == [f"video {n}" for n in range(15, 5, -1)]
    assert result["data"][0].user.first_name == "Olive"


async def test_list_videos_filters_by_status(database, owner):
    await add_videos(database, owner, 3)
    await add_videos(database, owner, 2, status=VideoStatus.COMPLETED)

    result = await service.list_videos_paginated(database, page=1, limit=10, status=VideoStatus.COMPLETED)

    assert result["total"] == 2
    assert result["total_pages"] == 1
    assert all(v.status == VideoStatus.COMPLETED for v in result["data"])


async def test_list_videos_empty(database):
    result = await service.list_videos_paginated(database)

    assert result["data"] == []
    assert result["total"] == 0
    assert result["total_pages"] == 0


async def test_update_status_merges_metadata(database, owner):
    [video] = await add_videos(database, owner, 1)
    async with database.session() as db:
        stored = await db.get(Video, video.id)
        stored.video_metadata = {"source": "phone", "duration": 12}
        await db.commit()

    async with database.session() as db:
        updated = await service.update_status(db, video.id, VideoStatus.PENDING, {"duration": 13, "queue": "default"})

    assert updated.status == VideoStatus.PENDING
    assert updated.video_metadata == {"source": "phone", "duration": 13, "queue": "default"}

    async with database.session() as db:
        stored = await db.get(Video, video.id)
    assert stored.status == VideoStatus.PENDING
    assert stored.video_metadata == {"source": "phone", "duration": 13, "queue": "default"}


async def test_update_status_without_metadata_keeps_existing(database, owner):
    [video] = await add_videos(database, owner, 1)
    async with database.session() as db:
        stored = await db.get(Video, video.id)
        stored.video_metadata = {"source": "phone"}
        await db.commit()

    async with database.session() as db:
        updated = await service.update_status(db, video.id, VideoStatus.PENDING)

    assert updated.video_metadata == {"source": "phone"}


async def test_update_status_rejects_illegal_transition(database, owner):
    [video] = await add_videos(database, owner, 1)

    async with database.session() as db:
        with pytest.raises(BadRequestError, match="Invalid status transition"):
            await service.update_status(db, video.id, VideoStatus.COMPLETED)

    async with database.session() as db:
        stored = await db.get(Video, video.id)
    assert stored.status == VideoStatus.UPLOADED


async def test_update_status_accepts_any_target_when_enforcement_disabled(database, owner, monkeypatch):
    monkeypatch.setattr(settings, "enforce_status_transitions", False)
    [video] = await add_videos(database, owner, 1)

    async with database.session() as db:
        updated = await service.update_status(db, video.id, VideoStatus.COMPLETED)

    assert updated.status == VideoStatus.COMPLETED


async def test_update_status_unknown_video(database):
    async with database.session() as db:
        with pytest.raises(NotFoundError):
            await service.update_status(db, uuid4(), VideoStatus.PENDING)


async def test_full_lifecycle(database, owner):
    [video] = await add_videos(database, owner, 1)

    for target in (VideoStatus.PENDING, VideoStatus.PROCESSING, VideoStatus.FAILED,
                   VideoStatus.PENDING, VideoStatus.PROCESSING, VideoStatus.COMPLETED):
        async with database.session() as db:
            updated = await service.update_status(db, video.id, target)
        assert updated.status == target


@pytest.mark.parametrize("current,target,allowed", [
    (VideoStatus.UPLOADED, VideoStatus.PENDING, True),
    (VideoStatus.PENDING, VideoStatus.PROCESSING, True),
    (VideoStatus.PROCESSING, VideoStatus.COMPLETED, True),
    (VideoStatus.PROCESSING, VideoStatus.FAILED, True),
    (VideoStatus.FAILED, VideoStatus.PENDING, True),
    (VideoStatus.PENDING, VideoStatus.PENDING, True),
    (VideoStatus.UPLOADED, VideoStatus.PROCESSING, False),
    (VideoStatus.UPLOADED, VideoStatus.COMPLETED, False),
    (VideoStatus.COMPLETED, VideoStatus.PENDING, False),
    (VideoStatus.PROCESSING, VideoStatus.UPLOADED, False),
])
def test_can_transition(current, target, allowed):
    assert can_transition(current, target) is allowed
