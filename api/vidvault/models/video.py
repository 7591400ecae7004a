"""Video model."""

import enum
from uuid import uuid4
from sqlalchemy import Column, Integer, String, Text, Enum, TIMESTAMP, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from vidvault.models.base import Base, JSONType, utcnow


class VideoStatus(str, enum.Enum):
    """Video processing status."""
    UPLOADED = "UPLOADED"
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Video(Base):
    """Video model."""

    __tablename__ = "videos"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    url = Column(String(1024), nullable=False)
    thumbnail = Column(String(1024), nullable=True)
    status = Column(
        Enum(VideoStatus, name="video_status", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=VideoStatus.UPLOADED,
        index=True,
    )
    video_metadata = Column("metadata", JSONType, nullable=True)  # Column name 'metadata' in DB, attribute 'video_metadata' in Python
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="videos", lazy="selectin")

    def __repr__(self):
        return f"<Video(id={self.id}, status={self.status})>"
