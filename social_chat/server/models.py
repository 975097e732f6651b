"""Database models for the social chat server."""
from datetime import datetime

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..shared.dto import FriendStatus
from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    login = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, index=True, nullable=False)
    image = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    failed_login_attempts = Column(Integer, default=0)
    lock_until = Column(DateTime, nullable=True)

    sent_messages = relationship("Message", back_populates="sender")


def friendship_pair_key(user_id: int, other_id: int) -> str:
    """Order-independent key shared by both directions of a friendship."""
    low, high = sorted((user_id, other_id))
    return f"{low}:{high}"


class Friendship(Base):
    __tablename__ = "friendships"
    __table_args__ = (UniqueConstraint("pair_key", name="uq_friendship_pair"),)

    id = Column(Integer, primary_key=True, index=True)
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    addressee_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    pair_key = Column(String, nullable=False)
    status = Column(Enum(FriendStatus), default=FriendStatus.PENDING, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    requester = relationship("User", foreign_keys=[requester_id])
    addressee = relationship("User", foreign_keys=[addressee_id])
    messages = relationship("Message", back_populates="friendship", cascade="all, delete-orphan")

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.pair_key is None:
            self.pair_key = friendship_pair_key(self.requester_id, self.addressee_id)


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    content = Column(Text, nullable=False)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    friendship_id = Column(Integer, ForeignKey("friendships.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    sender = relationship("User", back_populates="sent_messages")
    friendship = relationship("Friendship", back_populates="messages")
