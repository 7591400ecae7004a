"""Rows that reference a user and are removed with the account."""

from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, ForeignKey
from sqlalchemy.orm import relationship
from vidvault.models.base import Base, utcnow


class Like(Base):
    """A like left by a user."""

    __tablename__ = "likes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    user = relationship("User", back_populates="likes")

    def __repr__(self):
        return f"<Like(id={self.id}, user_id={self.user_id})>"


class Testimony(Base):
    """A testimonial written by a user."""

    __tablename__ = "testimonials"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    rating = Column(Integer, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    user = relationship("User", back_populates="testimonials")

    def __repr__(self):
        return f"<Testimony(id={self.id}, user_id={self.user_id})>"


class Agent(Base):
    """Agent profile owned by a user."""

    __tablename__ = "agents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    agency_name = Column(String(255), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    user = relationship("User", back_populates="agents")
    agent_review = relationship("AgentReview", back_populates="agent", uselist=False, lazy="selectin")

    def __repr__(self):
        return f"<Agent(id={self.id}, user_id={self.user_id})>"


class AgentReview(Base):
    """Review attached to an agent (at most one per agent)."""

    __tablename__ = "agent_reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    agent_id = Column(Integer, ForeignKey("agents.id"), nullable=False, unique=True)
    rating = Column(Integer, nullable=True)
    comment = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    agent = relationship("Agent", back_populates="agent_review")

    def __repr__(self):
        return f"<AgentReview(id={self.id}, agent_id={self.agent_id})>"
