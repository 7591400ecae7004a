"""SQLAlchemy ORM models for Vidvault."""

from vidvault.models.base import Base
from vidvault.models.user import User, UserRole, Role
from vidvault.models.video import Video, VideoStatus
from vidvault.models.activity import Like, Testimony, Agent, AgentReview

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Role",
    "Video",
    "VideoStatus",
    "Like",
    "Testimony",
    "Agent",
    "AgentReview",
]
