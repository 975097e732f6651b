"""Console client for the social chat application."""
import sys
from typing import Dict, Optional

from .api import describe_error
from .gui.app import ChatController
from .models import User
from .presentation import MessagesPanelModel, Toast, user_choice_label
from .query import QueryClient
from .storage import get_token
from ..shared.utils import is_password_strong


def print_toast(toast: Toast) -> None:
    if toast.description:
        print(f"{toast.title} {toast.description}")
    else:
        print(toast.title)


class ChatClient:
    """Interactive console client for friends and direct messages."""

    def __init__(self, server_url: str):
        self.controller = ChatController(server_url)
        self.query_client = QueryClient()

    def register(self) -> None:
        print("=== Register ===")
        login = input("Login: ").strip()
        password = input("Password (min 10 chars): ").strip()
        name = input("Display name: ").strip()
        image = input("Avatar URL (optional): ").strip() or None

        if not is_password_strong(password):
            print("Password too weak or blacklisted.")
            return
        try:
            self.controller.register(login, password, name, image)
            print("Registration successful. You can now log in.")
        except Exception as exc:  # noqa: BLE001
            print(f"Registration failed: {describe_error(exc)}")

    def login(self) -> bool:
        print("=== Login ===")
        login = input("Login: ").strip()
        password = input("Password: ").strip()
        try:
            user = self.controller.login(login, password)
        except Exception as exc:  # noqa: BLE001
            print(f"Login failed: {describe_error(exc)}")
            return False
        print(f"Welcome, {user.name}!")
        return True

    def list_friends(self) -> Dict[int, User]:
        try:
            friends = self.controller.list_friends()
        except Exception as exc:  # noqa: BLE001
            print(f"Could not fetch friends: {describe_error(exc)}")
            return {}
        for friend in friends:
            marker = "[x]" if friend.status == "accepted" else "[ ]"
            print(f"{marker} {friend.user.id}: {friend.user.name} ({friend.status}, request #{friend.id})")
        if not friends:
            print("No friends yet.")
        return {f.user.id: f.user for f in friends}

    def add_friend(self) -> None:
        name = input("Name to search: ").strip()
        try:
            users = [u for u in self.controller.list_users(name=name) if u.id != self.controller.user.id]
        except Exception as exc:  # noqa: BLE001
            print(f"Search failed: {describe_error(exc)}")
            return
        if not users:
            print("User not found.")
            return
        for u in users:
            print(f"- {u.id}: {user_choice_label(u)}")
        choice = input("User id to add: ").strip()
        if not choice.isdigit():
            return
        try:
            friend = self.controller.send_friend_request(int(choice))
        except Exception as exc:  # noqa: BLE001
            print(f"Friend request failed: {describe_error(exc)}")
            return
        print(f"Friend request to {friend.user.name}: {friend.status}")

    def answer_request(self) -> None:
        choice = input("Request # to answer: ").strip()
        if not choice.isdigit():
            return
        action = input("[a]ccept or [d]ecline: ").strip().lower()
        try:
            if action == "a":
                self.controller.accept_friend_request(int(choice))
                print("Request accepted.")
            elif action == "d":
                self.controller.decline_friend_request(int(choice))
                print("Request declined.")
        except Exception as exc:  # noqa: BLE001
            print(f"Could not answer request: {describe_error(exc)}")

    def start_chat(self) -> None:
        friends = self.list_friends()
        choice = input("Friend id: ").strip()
        if not choice.isdigit() or int(choice) not in friends:
            print("Friend not found.")
            return
        panel = MessagesPanelModel(int(choice), self.controller.user, self.controller, self.query_client, print_toast)
        panel.load()
        self._print_panel(panel)
        while True:
            live = "on" if panel.live_updates else "off"
            print(f"\nChat commands: [s]end, [r]efresh, [l]ive updates ({live}), [b]ack")
            cmd = input("> ").strip().lower()
            if cmd == "b":
                break
            if cmd == "s":
                if not panel.can_send:
                    print("You need to be friends to send messages")
                    continue
                panel.draft = input("Message: ")
                panel.submit()
                self._print_panel(panel)
            if cmd == "r":
                panel.messages_query.refresh()
                self._print_panel(panel)
            if cmd == "l":
                panel.toggle_live_updates()
                if panel.poll():
                    self._print_panel(panel)
        panel.dispose()

    def _print_panel(self, panel: MessagesPanelModel) -> None:
        if panel.empty_state:
            for line in panel.empty_state:
                print(line)
            return
        for group in panel.groups:
            print(f"[{group.initials}] {group.sender.name}")
            for message in group.visible_messages:
                timestamp = message.created_at.strftime("%H:%M")
                suffix = " (sending)" if message.pending else ""
                print(f"    {timestamp} {message.content}{suffix}")

    def logout(self) -> None:
        try:
            self.controller.logout()
        except Exception as exc:  # noqa: BLE001
            print(f"Server logout failed: {describe_error(exc)}")
        print("Logged out.")


def main(server_url: Optional[str] = None):
    print("Social Chat Client")
    server_url = server_url or input("Server URL (e.g. http://127.0.0.1:8000): ").strip()
    client = ChatClient(server_url)

    while True:
        print("\nMenu: [r]egister, [l]ogin, [q]uit")
        choice = input("> ").strip().lower()
        if choice == "q":
            sys.exit(0)
        if choice == "r":
            client.register()
        if choice == "l":
            if client.login():
                while get_token():
                    print("\nUser menu: [f]riends, [a]dd friend, [r]equests, [c]hat, [o] logout")
                    sub = input("> ").strip().lower()
                    if sub == "o":
                        client.logout()
                        break
                    if sub == "f":
                        client.list_friends()
                    if sub == "a":
                        client.add_friend()
                    if sub == "r":
                        client.answer_request()
                    if sub == "c":
                        client.start_chat()


if __name__ == "__main__":
    main()
