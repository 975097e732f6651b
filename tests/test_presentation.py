"""Friend card and messages panel view models."""
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
import requests

from social_chat.client.models import ChatMessage, FriendStatusInfo, User
from social_chat.client.presentation import (
    EMPTY_CAN_SEND,
    EMPTY_NOT_FRIENDS,
    EMPTY_TITLE,
    SEND_FAILURE_TITLE,
    SEND_SUCCESS_TITLE,
    FriendCardModel,
    MessagesPanelModel,
    avatar_fallback,
    group_messages,
    messages_key,
    user_choice_label,
)
from social_chat.client.query import QueryClient
from social_chat.shared.dto import FriendStatus

ME = User(id=1, login="alice", name="Alice", image="https://example.com/a.png")
FRIEND = User(id=2, login="bob", name="Bob")
T0 = datetime(2024, 5, 1, 12, 0, 0)


def message(message_id, sender, content="hi", minutes=0):
    created = T0 + timedelta(minutes=minutes)
    return ChatMessage(
        id=message_id,
        content=content,
        sender_id=sender.id,
        friendship_id=10,
        created_at=created,
        updated_at=created,
        sender=sender,
    )


def status(value):
    return FriendStatusInfo(user_id=FRIEND.id, status=value, friendship_id=10 if value else None)


@pytest.fixture()
def controller():
    ctrl = MagicMock()
    ctrl.get_friend_status.return_value = status(FriendStatus.ACCEPTED)
    ctrl.get_messages_between_users.return_value = []
    return ctrl


@pytest.fixture()
def toasts():
    return []


@pytest.fixture()
def panel(controller, toasts):
    model = MessagesPanelModel(FRIEND.id, ME, controller, QueryClient(), toasts.append)
    model.load()
    return model


class TestGrouping:
    def test_consecutive_messages_from_one_sender_share_a_group(self):
        messages = [
            message(1, ME, "a"),
            message(2, ME, "b", 1),
            message(3, FRIEND, "c", 2),
            message(4, ME, "d", 3),
        ]
        groups = group_messages(messages)
        assert [[m.id for m in g.messages] for g in groups] == [[1, 2], [3], [4]]
        assert [g.sender.name for g in groups] == ["Alice", "Bob", "Alice"]

    def test_empty_history(self):
        assert group_messages([]) == []

    def test_blank_messages_hidden_from_group(self):
        group = group_messages([message(1, FRIEND, ""), message(2, FRIEND, "visible")])[0]
        assert [m.id for m in group.visible_messages] == [2]

    def test_avatar_fallback(self):
        assert avatar_fallback("Alice") == "Al"
        assert avatar_fallback(None, "?") == "?"
        assert avatar_fallback("", "?") == "?"
        assert group_messages([message(1, User(id=3, login="x", name=""))])[0].initials == "?"

    def test_user_choice_label_tells_namesakes_apart(self):
        labels = {user_choice_label(User(id=i, login=login, name="Bob")) for i, login in [(2, "bob"), (3, "bobby")]}
        assert labels == {"Bob (bob)", "Bob (bobby)"}


class TestFriendCard:
    def test_loading_then_accepted(self, controller):
        card = FriendCardModel(FRIEND, controller, QueryClient())
        assert card.is_loading
        assert not card.is_accepted
        card.load()
        assert not card.is_loading
        assert card.is_accepted
        controller.get_friend_status.assert_called_once_with(FRIEND.id)

    def test_pending_has_no_check_mark(self, controller):
        controller.get_friend_status.return_value = status(FriendStatus.PENDING)
        card = FriendCardModel(FRIEND, controller, QueryClient())
        card.load()
        assert not card.is_accepted

    def test_display_fields(self, controller):
        card = FriendCardModel(ME, controller, QueryClient())
        assert card.name == "Alice"
        assert card.image == "https://example.com/a.png"
        assert card.initials == "Al"
        assert FriendCardModel(FRIEND, controller, QueryClient()).image == ""

    def test_card_and_panel_share_friend_status(self, controller):
        client = QueryClient()
        card = FriendCardModel(FRIEND, controller, client)
        card.load()
        panel = MessagesPanelModel(FRIEND.id, ME, controller, client)
        assert panel.can_send
        assert panel.friend_status is card.status_query.data

    def test_panel_load_revalidates_status_cached_by_card(self, controller):
        client = QueryClient()
        controller.get_friend_status.return_value = status(FriendStatus.PENDING)
        card = FriendCardModel(FRIEND, controller, client)
        card.load()
        assert not card.is_accepted

        controller.get_friend_status.return_value = status(FriendStatus.ACCEPTED)
        panel = MessagesPanelModel(FRIEND.id, ME, controller, client)
        panel.load()

        assert panel.can_send
        assert card.is_accepted
        assert panel.empty_state == [EMPTY_TITLE, EMPTY_CAN_SEND]
        assert controller.get_friend_status.call_count == 2

    def test_reopened_panel_refetches_history(self, controller):
        client = QueryClient()
        first = MessagesPanelModel(FRIEND.id, ME, controller, client)
        first.load()
        first.dispose()

        controller.get_messages_between_users.return_value = [message(3, FRIEND, "while away")]
        reopened = MessagesPanelModel(FRIEND.id, ME, controller, client)
        reopened.load()

        assert [m.content for m in reopened.messages] == ["while away"]
        assert controller.get_messages_between_users.call_count == 2


class TestEmptyState:
    def test_friends_are_invited_to_write(self, panel):
        assert panel.empty_state == [EMPTY_TITLE, EMPTY_CAN_SEND]

    def test_non_friends_are_told_why(self, controller):
        controller.get_friend_status.return_value = status(None)
        model = MessagesPanelModel(FRIEND.id, ME, controller, QueryClient())
        model.load()
        assert not model.can_send
        assert model.empty_state == [EMPTY_TITLE, EMPTY_NOT_FRIENDS]

    def test_history_hides_empty_state(self, controller):
        controller.get_messages_between_users.return_value = [message(1, FRIEND)]
        model = MessagesPanelModel(FRIEND.id, ME, controller, QueryClient())
        model.load()
        assert model.empty_state == []
        assert len(model.groups) == 1


class TestLiveUpdates:
    def test_toggle_switches_polling_interval(self, panel):
        assert panel.refetch_interval is None
        assert panel.toggle_live_updates() is True
        assert panel.refetch_interval == 1.0
        assert panel.toggle_live_updates() is False
        assert panel.refetch_interval is None

    def test_poll_refetches_only_when_live(self, controller, toasts):
        now = [0.0]
        client = QueryClient(clock=lambda: now[0])
        model = MessagesPanelModel(FRIEND.id, ME, controller, client, toasts.append)
        model.load()
        assert not model.poll()
        model.set_live_updates(True)
        now[0] += 1.0
        controller.get_messages_between_users.return_value = [message(5, FRIEND, "new")]
        assert model.poll()
        assert [m.content for m in model.messages] == ["new"]


class TestSubmit:
    def test_blank_draft_is_ignored(self, panel, controller, toasts):
        panel.draft = "   "
        assert panel.submit() is False
        controller.send_message.assert_not_called()
        assert toasts == []

    def test_not_friends_cannot_submit(self, controller):
        controller.get_friend_status.return_value = status(FriendStatus.PENDING)
        model = MessagesPanelModel(FRIEND.id, ME, controller, QueryClient())
        model.load()
        model.draft = "hello"
        assert model.submit() is False
        controller.send_message.assert_not_called()

    def test_optimistic_message_is_visible_while_sending(self, panel, controller):
        seen = []

        def send(friend_id, content):
            seen.extend(panel.messages)
            return message(99, ME, content)

        controller.send_message.side_effect = send
        panel.draft = "  hello  "
        panel.submit()

        assert len(seen) == 1
        optimistic = seen[0]
        assert optimistic.pending
        assert optimistic.content == "hello"
        assert optimistic.sender_id == ME.id
        assert optimistic.sender is ME
        assert optimistic.friendship_id == 10
        controller.send_message.assert_called_once_with(FRIEND.id, "hello")

    def test_success_notifies_clears_draft_and_refetches(self, panel, controller, toasts):
        sent = message(99, ME, "hello")
        controller.send_message.return_value = sent
        controller.get_messages_between_users.return_value = [sent]
        panel.draft = "hello"

        assert panel.submit() is True
        assert panel.draft == ""
        assert [t.title for t in toasts] == [SEND_SUCCESS_TITLE]
        assert panel.messages == [sent]
        assert not panel.messages[0].pending

    def test_failure_rolls_back_and_shows_reason(self, panel, controller, toasts):
        existing = [message(1, FRIEND, "earlier")]
        panel.client.set_query_data(messages_key(FRIEND.id), existing)
        response = requests.Response()
        response.status_code = 403
        response._content = b'{"detail": "You need to be friends to send messages"}'
        controller.send_message.side_effect = requests.HTTPError("403", response=response)
        cache_at_toast = []
        panel.notify = lambda toast: (toasts.append(toast), cache_at_toast.append(list(panel.messages)))
        panel.draft = "hello"

        assert panel.submit() is False
        assert cache_at_toast == [existing]
        assert panel.draft == "hello"
        toast = toasts[0]
        assert toast.title == SEND_FAILURE_TITLE
        assert toast.variant == "destructive"
        assert toast.description == "You need to be friends to send messages"

    def test_failure_without_detail_uses_generic_text(self, panel, controller, toasts):
        controller.send_message.side_effect = RuntimeError("")
        panel.draft = "hello"
        panel.submit()
        assert toasts[0].description == "An error occurred"
        assert panel.messages == []

    def test_failure_still_refetches_history(self, panel, controller, toasts):
        controller.send_message.side_effect = RuntimeError("")
        arrived = [message(7, FRIEND, "sent meanwhile")]
        controller.get_messages_between_users.return_value = arrived
        calls_before = controller.get_messages_between_users.call_count
        panel.draft = "hello"

        assert panel.submit() is False
        assert controller.get_messages_between_users.call_count == calls_before + 1
        assert panel.messages == arrived
        assert [t.variant for t in toasts] == ["destructive"]

    def test_sending_flag_set_only_during_request(self, panel, controller):
        seen = []

        def send(friend_id, content):
            seen.append(panel.is_sending)
            return message(99, ME, content)

        controller.send_message.side_effect = send
        assert not panel.is_sending
        panel.draft = "hello"
        panel.submit()
        assert seen == [True]
        assert not panel.is_sending
