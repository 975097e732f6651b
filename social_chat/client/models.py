"""Client-side models for user, friendship and message display."""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Union

from ..shared.dto import FriendStatus


def _parse_datetime(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class User:
    id: int
    login: str
    name: str
    image: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(id=data["id"], login=data.get("login", ""), name=data.get("name", ""), image=data.get("image"))


@dataclass
class ChatMessage:
    id: Union[int, str]
    content: str
    sender_id: int
    friendship_id: Optional[int]
    created_at: datetime
    updated_at: datetime
    sender: User
    # True for a locally inserted message the server has not confirmed yet.
    pending: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        return cls(
            id=data["id"],
            content=data.get("content") or "",
            sender_id=data["sender_id"],
            friendship_id=data.get("friendship_id"),
            created_at=_parse_datetime(data["created_at"]),
            updated_at=_parse_datetime(data.get("updated_at") or data["created_at"]),
            sender=User.from_dict(data["sender"]),
        )


@dataclass
class FriendStatusInfo:
    user_id: int
    status: Optional[FriendStatus] = None
    friendship_id: Optional[int] = None
    requested_by_me: bool = False

    @property
    def is_accepted(self) -> bool:
        return self.status == FriendStatus.ACCEPTED

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FriendStatusInfo":
        status = data.get("status")
        return cls(
            user_id=data["user_id"],
            status=FriendStatus(status) if status else None,
            friendship_id=data.get("friendship_id"),
            requested_by_me=bool(data.get("requested_by_me")),
        )


@dataclass
class Friend:
    id: int
    user: User
    status: str
    added_at: datetime

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Friend":
        return cls(
            id=data["id"],
            user=User.from_dict(data["user"]),
            status=data["status"],
            added_at=_parse_datetime(data["added_at"]),
        )
