"""Application controller logic shared by the GUI and console clients."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from .. import api
from ..models import ChatMessage, Friend, FriendStatusInfo, User
from ..storage import clear_auth, get_server_url, get_user, store_auth, store_server_url
from ...shared.utils import clean_message, is_password_strong


class ChatController:
    """Wraps the HTTP API and converts responses into client models."""

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = base_url or get_server_url() or ""
        if self.base_url:
            self.api = api.APIClient(self.base_url)
        else:
            self.api = None
        stored = get_user()
        self.user: Optional[User] = User.from_dict(stored) if stored else None

    def set_base_url(self, url: str) -> None:
        self.base_url = url.rstrip("/")
        store_server_url(self.base_url)
        self.api = api.APIClient(self.base_url)

    def ensure_ready(self) -> None:
        if not self.api:
            raise RuntimeError("Server URL not configured")

    def ensure_logged_in(self) -> User:
        self.ensure_ready()
        if not self.user:
            raise RuntimeError("Not logged in")
        return self.user

    def register(self, login: str, password: str, name: str, image: Optional[str] = None) -> User:
        self.ensure_ready()
        if not is_password_strong(password):
            raise ValueError("Password does not meet policy requirements")
        payload: Dict[str, Any] = {"login": login, "password": password, "name": name}
        if image:
            payload["image"] = image
        return User.from_dict(self.api.register(payload))

    def login(self, login: str, password: str) -> User:
        self.ensure_ready()
        response = self.api.login(login, password)
        store_auth(response["token"], response["user"])
        self.user = User.from_dict(response["user"])
        return self.user

    def logout(self) -> None:
        try:
            if self.api and self.user:
                self.api.logout()
        finally:
            clear_auth()
            self.user = None

    def list_users(self, name: Optional[str] = None) -> List[User]:
        self.ensure_logged_in()
        return [User.from_dict(u) for u in self.api.list_users(name=name)]

    def get_user(self, user_id: int) -> User:
        self.ensure_logged_in()
        return User.from_dict(self.api.get_user(user_id))

    def list_friends(self) -> List[Friend]:
        self.ensure_logged_in()
        return [Friend.from_dict(f) for f in self.api.list_friends()]

    def send_friend_request(self, user_id: int) -> Friend:
        self.ensure_logged_in()
        return Friend.from_dict(self.api.send_friend_request(user_id))

    def accept_friend_request(self, friendship_id: int) -> Friend:
        self.ensure_logged_in()
        return Friend.from_dict(self.api.accept_friend_request(friendship_id))

    def decline_friend_request(self, friendship_id: int) -> None:
        self.ensure_logged_in()
        self.api.decline_friend_request(friendship_id)

    def get_friend_status(self, user_id: int) -> FriendStatusInfo:
        self.ensure_logged_in()
        return FriendStatusInfo.from_dict(self.api.get_friend_status(user_id))

    def get_messages_between_users(self, friend_id: int, after_message_id: int = 0) -> List[ChatMessage]:
        self.ensure_logged_in()
        return [ChatMessage.from_dict(m) for m in self.api.get_messages(friend_id, after_message_id=after_message_id)]

    def send_message(self, friend_id: int, content: str) -> ChatMessage:
        self.ensure_logged_in()
        text = clean_message(content)
        if not text:
            raise ValueError("Message cannot be empty")
        return ChatMessage.from_dict(self.api.send_message(friend_id, text))


__all__ = ["ChatController", "is_password_strong"]
