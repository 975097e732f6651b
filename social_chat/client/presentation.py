"""View models behind the friend card and the messages panel.

Widgets in ``gui.windows`` only read from these objects and forward user
input to them, so everything here works without a running Qt application.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..shared.dto import LIVE_UPDATE_INTERVAL_MS
from ..shared.utils import clean_message
from .api import DEFAULT_ERROR_MESSAGE, describe_error
from .models import ChatMessage, FriendStatusInfo, User
from .query import SUCCESS, Mutation, Query, QueryClient

SEND_SUCCESS_TITLE = "Message sent"
SEND_FAILURE_TITLE = "Well this did not work..."
EMPTY_TITLE = "No messages yet"
EMPTY_CAN_SEND = "Send a message"
EMPTY_NOT_FRIENDS = "You need to be friends to send messages"


def friend_status_key(user_id: int) -> tuple:
    return (user_id, "friend-status")


def messages_key(friend_id: int) -> tuple:
    return (friend_id, "messages")


def avatar_fallback(name: Optional[str], default: str = "") -> str:
    """Two leading characters of a display name, used when there is no image."""
    return name[:2] if name else default


def user_choice_label(user: User) -> str:
    return f"{user.name} ({user.login})"


@dataclass
class Toast:
    title: str
    description: Optional[str] = None
    variant: str = "default"  # or "destructive"


@dataclass
class MessageGroup:
    """Consecutive messages written by one sender."""

    sender: User
    messages: List[ChatMessage] = field(default_factory=list)

    @property
    def sender_id(self) -> int:
        return self.messages[0].sender_id

    @property
    def initials(self) -> str:
        return avatar_fallback(self.sender.name, "?")

    @property
    def visible_messages(self) -> List[ChatMessage]:
        return [m for m in self.messages if m.content]


def group_messages(messages: List[ChatMessage]) -> List[MessageGroup]:
    """Batch consecutive messages from the same sender, keeping their order."""
    groups: List[MessageGroup] = []
    for message in messages:
        if groups and groups[-1].sender_id == message.sender_id:
            groups[-1].messages.append(message)
        else:
            groups.append(MessageGroup(sender=message.sender, messages=[message]))
    return groups


class FriendCardModel:
    """A user card showing whether the friendship is accepted."""

    def __init__(self, user: User, controller, query_client: QueryClient):
        self.user = user
        self.status_query = Query(
            query_client,
            friend_status_key(user.id),
            lambda: controller.get_friend_status(user.id),
        )

    def load(self) -> Optional[FriendStatusInfo]:
        return self.status_query.fetch_if_needed()

    @property
    def name(self) -> str:
        return self.user.name or ""

    @property
    def image(self) -> str:
        return self.user.image or ""

    @property
    def initials(self) -> str:
        return avatar_fallback(self.user.name)

    @property
    def is_loading(self) -> bool:
        return self.status_query.is_loading

    @property
    def is_accepted(self) -> bool:
        status = self.status_query.data
        return bool(status and status.is_accepted)

    def dispose(self) -> None:
        self.status_query.dispose()


class MessagesPanelModel:
    """Conversation with one friend: history, live updates and sending."""

    def __init__(
        self,
        friend_id: int,
        user: User,
        controller,
        query_client: QueryClient,
        notify: Optional[Callable[[Toast], None]] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.friend_id = friend_id
        self.user = user
        self.controller = controller
        self.client = query_client
        self.notify = notify or (lambda toast: None)
        self.clock = clock
        self.draft = ""
        self.live_updates = False
        self.messages_query = Query(
            query_client,
            messages_key(friend_id),
            lambda: controller.get_messages_between_users(friend_id),
        )
        self.status_query = Query(
            query_client,
            friend_status_key(friend_id),
            lambda: controller.get_friend_status(friend_id),
        )
        self.mutation = Mutation(
            self._send,
            on_mutate=self._on_mutate,
            on_success=self._on_success,
            on_error=self._on_error,
            on_settled=self._on_settled,
        )

    def load(self) -> None:
        self.messages_query.fetch_if_needed()
        self.status_query.fetch_if_needed()

    def set_live_updates(self, enabled: bool) -> None:
        self.live_updates = enabled
        self.messages_query.refetch_interval = LIVE_UPDATE_INTERVAL_MS / 1000 if enabled else None

    def toggle_live_updates(self) -> bool:
        self.set_live_updates(not self.live_updates)
        return self.live_updates

    @property
    def refetch_interval(self) -> Optional[float]:
        return self.messages_query.refetch_interval

    def poll(self, now: Optional[float] = None) -> bool:
        return self.messages_query.poll(now)

    @property
    def friend_status(self) -> Optional[FriendStatusInfo]:
        return self.status_query.data

    @property
    def can_send(self) -> bool:
        status = self.friend_status
        return bool(status and status.is_accepted)

    @property
    def is_sending(self) -> bool:
        return self.mutation.is_pending

    @property
    def messages(self) -> List[ChatMessage]:
        return self.messages_query.data or []

    @property
    def groups(self) -> List[MessageGroup]:
        return group_messages(self.messages)

    @property
    def empty_state(self) -> List[str]:
        if self.messages:
            return []
        return [EMPTY_TITLE, EMPTY_CAN_SEND if self.can_send else EMPTY_NOT_FRIENDS]

    def submit(self) -> bool:
        """Send the draft; returns True when the server accepted it."""
        content = clean_message(self.draft)
        if not content or not self.can_send:
            return False
        self.mutation.mutate(content)
        return self.mutation.status == SUCCESS

    def _send(self, content: str) -> ChatMessage:
        return self.controller.send_message(self.friend_id, content)

    def _on_mutate(self, content: str) -> Dict[str, Any]:
        key = messages_key(self.friend_id)
        self.client.cancel_queries(key)
        previous = self.client.get_query_data(key)
        now = self.clock()
        status = self.friend_status
        optimistic = ChatMessage(
            id=f"optimistic-{uuid.uuid4().hex}",
            content=content,
            sender_id=self.user.id,
            friendship_id=status.friendship_id if status else None,
            created_at=now,
            updated_at=now,
            sender=self.user,
            pending=True,
        )
        self.client.set_query_data(key, lambda old: list(old or []) + [optimistic])
        return {"previous_messages": previous}

    def _on_success(self, message: ChatMessage, content: str, context: Any) -> None:
        self.notify(Toast(SEND_SUCCESS_TITLE))
        self.draft = ""

    def _on_error(self, exc: BaseException, content: str, context: Optional[Dict[str, Any]]) -> None:
        if context is not None:
            self.client.set_query_data(messages_key(self.friend_id), context["previous_messages"])
        self.notify(Toast(SEND_FAILURE_TITLE, describe_error(exc) or DEFAULT_ERROR_MESSAGE, "destructive"))

    def _on_settled(self, message: Any, exc: Optional[BaseException], content: str, context: Any) -> None:
        self.client.invalidate_queries(messages_key(self.friend_id))

    def dispose(self) -> None:
        self.messages_query.dispose()
        self.status_query.dispose()
