"""Pydantic schemas for request and response bodies."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..shared.dto import FriendStatus


class RegisterRequest(BaseModel):
    login: str = Field(..., min_length=3)
    password: str
    name: str = Field(..., min_length=1)
    image: Optional[str] = None


class LoginRequest(BaseModel):
    login: str
    password: str


class UserOut(BaseModel):
    id: int
    login: str
    name: str
    image: Optional[str] = None

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    token: str
    user: UserOut


class FriendRequestCreate(BaseModel):
    target_user_id: int


class FriendOut(BaseModel):
    id: int
    user: UserOut
    status: str  # 'accepted', 'pending_sent', 'pending_received'
    added_at: datetime


class FriendStatusOut(BaseModel):
    user_id: int
    status: Optional[FriendStatus] = None
    friendship_id: Optional[int] = None
    requested_by_me: bool = False


class MessageCreate(BaseModel):
    content: str


class MessageOut(BaseModel):
    id: int
    content: str
    sender_id: int
    friendship_id: int
    created_at: datetime
    updated_at: datetime
    sender: UserOut

    class Config:
        from_attributes = True
