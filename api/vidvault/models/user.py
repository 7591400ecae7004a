"""User and role assignment models."""

import enum
from sqlalchemy import Column, Integer, String, Enum, TIMESTAMP, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from vidvault.models.base import Base, utcnow


class Role(str, enum.Enum):
    """Closed set of roles a user can be assigned."""
    ADMIN = "ADMIN"
    CLIENT = "CLIENT"
    GUEST = "GUEST"


class User(Base):
    """User account model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    password = Column(String(255), nullable=False)  # argon2 hash, never plain text
    photo = Column(String(512), nullable=True)
    otp = Column(String(16), nullable=True)
    otp_expires_at = Column(TIMESTAMP(timezone=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    roles = relationship("UserRole", back_populates="user", lazy="selectin")
    videos = relationship("Video", back_populates="user")
    likes = relationship("Like", back_populates="user")
    testimonials = relationship("Testimony", back_populates="user")
    agents = relationship("Agent", back_populates="user")

    @property
    def role_names(self) -> list[str]:
        return [assignment.role.value for assignment in self.roles]

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"


class UserRole(Base):
    """A single (user, role) assignment."""

    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(
        Enum(Role, name="role", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
    )

    # Relationships
    user = relationship("User", back_populates="roles")

    def __repr__(self):
        return f"<UserRole(user_id={self.user_id}, role={self.role})>"
