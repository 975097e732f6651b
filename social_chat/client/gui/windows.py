"""PyQt window classes for the social chat GUI."""
from __future__ import annotations

import html
from typing import Dict, List, Optional

from PyQt6.QtCore import Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QTextOption
from PyQt6.QtWidgets import (
    QApplication,
    QDialog,
    QFormLayout,
    QFrame,
    QGroupBox,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QScrollArea,
    QTabWidget,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from ...shared.dto import LIVE_UPDATE_INTERVAL_MS
from ..api import describe_error
from ..models import Friend, User
from ..presentation import FriendCardModel, MessageGroup, MessagesPanelModel, Toast, user_choice_label
from ..query import QueryClient
from .app import ChatController, is_password_strong
from .styles import (
    ACCENT,
    ACCEPTED,
    AVATAR_SIZE,
    BORDER_RADIUS,
    CARD_BG,
    CARD_BORDER,
    CARD_RADIUS,
    LIVE_OFF,
    PADDING,
    PRIMARY_BG,
    SIDEBAR_BG,
    SKELETON,
    TEXT_MUTED,
    TEXT_PRIMARY,
    TOAST_TIMEOUT_MS,
)


class ServerConfigDialog(QDialog):
    """Dialog used to collect the server URL on first launch."""

    def __init__(self, parent: QWidget | None = None, prefill: str | None = None):
        super().__init__(parent)
        self.setWindowTitle("Server configuration")
        layout = QFormLayout(self)
        self.url_input = QLineEdit(prefill or "http://127.0.0.1:8000")
        layout.addRow("Server URL", self.url_input)
        btn = QPushButton("Save & connect")
        btn.clicked.connect(self.accept)
        layout.addWidget(btn)

    def server_url(self) -> str:
        return self.url_input.text().strip()


class LoginWindow(QMainWindow):
    """Login and registration entry window."""

    logged_in = pyqtSignal()

    def __init__(self, controller: ChatController):
        super().__init__()
        self.controller = controller
        self.setWindowTitle("Social Chat - Sign in")
        self.resize(640, 420)
        self._ensure_server_url()
        self._build_ui()

    def _ensure_server_url(self) -> None:
        if not self.controller.base_url:
            dialog = ServerConfigDialog(self)
            if dialog.exec() == QDialog.DialogCode.Accepted:
                self.controller.set_base_url(dialog.server_url())
            else:
                self.close()
        else:
            self.controller.set_base_url(self.controller.base_url)

    def _build_ui(self) -> None:
        tabs = QTabWidget()
        tabs.addTab(self._build_login_tab(), "Login")
        tabs.addTab(self._build_register_tab(), "Register")
        self.setCentralWidget(tabs)

    def _build_login_tab(self) -> QWidget:
        widget = QWidget()
        layout = QFormLayout(widget)
        self.login_input = QLineEdit()
        self.login_password = QLineEdit()
        self.login_password.setEchoMode(QLineEdit.EchoMode.Password)
        layout.addRow("Login", self.login_input)
        layout.addRow("Password", self.login_password)
        self.login_error = QLabel()
        self.login_error.setStyleSheet("color: red")
        login_btn = QPushButton("Log in")
        login_btn.clicked.connect(self._login)
        layout.addRow(self.login_error)
        layout.addRow(login_btn)
        return widget

    def _build_register_tab(self) -> QWidget:
        widget = QWidget()
        layout = QFormLayout(widget)
        self.reg_login = QLineEdit()
        self.reg_password = QLineEdit()
        self.reg_password.setEchoMode(QLineEdit.EchoMode.Password)
        self.reg_confirm = QLineEdit()
        self.reg_confirm.setEchoMode(QLineEdit.EchoMode.Password)
        self.reg_name = QLineEdit()
        self.reg_image = QLineEdit()
        self.reg_image.setPlaceholderText("https://... (optional)")
        layout.addRow("Login", self.reg_login)
        layout.addRow("Password", self.reg_password)
        layout.addRow("Confirm", self.reg_confirm)
        layout.addRow("Display name", self.reg_name)
        layout.addRow("Avatar URL", self.reg_image)
        hint = QLabel("Password: min 10 chars, not trivial")
        hint.setStyleSheet(f"color: {TEXT_MUTED}")
        layout.addRow(hint)
        self.reg_error = QLabel()
        self.reg_error.setStyleSheet("color: red")
        reg_btn = QPushButton("Register")
        reg_btn.clicked.connect(self._register)
        layout.addRow(self.reg_error)
        layout.addRow(reg_btn)
        return widget

    def _login(self) -> None:
        self.login_error.clear()
        try:
            self.controller.login(self.login_input.text().strip(), self.login_password.text())
        except Exception as exc:  # noqa: BLE001
            self.login_error.setText(describe_error(exc))
            return
        self.logged_in.emit()

    def _register(self) -> None:
        self.reg_error.clear()
        password = self.reg_password.text()
        if password != self.reg_confirm.text():
            self.reg_error.setText("Passwords do not match")
            return
        if not is_password_strong(password):
            self.reg_error.setText("Password does not meet policy")
            return
        try:
            self.controller.register(
                self.reg_login.text().strip(),
                password,
                self.reg_name.text().strip(),
                self.reg_image.text().strip() or None,
            )
        except Exception as exc:  # noqa: BLE001
            self.reg_error.setText(describe_error(exc))
            return
        QMessageBox.information(self, "Registered", "Account created. You can log in now.")


class AvatarLabel(QLabel):
    """Round initials badge; the image URL is shown as a tooltip."""

    def __init__(self, initials: str, image: str = "", parent: QWidget | None = None):
        super().__init__(initials, parent)
        self.setFixedSize(AVATAR_SIZE, AVATAR_SIZE)
        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setStyleSheet(
            f"background: {SKELETON}; color: {TEXT_PRIMARY}; border-radius: {AVATAR_SIZE // 2}px; font-weight: bold"
        )
        if image:
            self.setToolTip(image)


class FriendCard(QFrame):
    """Card with avatar, name and a check mark once the friendship is accepted."""

    clicked = pyqtSignal(int)

    def __init__(self, model: FriendCardModel, parent: QWidget | None = None):
        super().__init__(parent)
        self.model = model
        self.setStyleSheet(
            f"FriendCard {{ background: {CARD_BG}; border: 1px solid {CARD_BORDER}; border-radius: {CARD_RADIUS}px; }}"
        )
        layout = QVBoxLayout(self)
        top = QHBoxLayout()
        top.addWidget(AvatarLabel(model.initials, model.image))
        top.addStretch()
        self.status_label = QLabel()
        top.addWidget(self.status_label)
        layout.addLayout(top)
        layout.addWidget(QLabel(model.name))
        self._unsubscribe = model.status_query.subscribe(lambda _state: self.render())
        self.render()

    def render(self) -> None:
        if self.model.is_loading:
            self.status_label.setText("Loading")
            self.status_label.setStyleSheet(f"background: {SKELETON}; color: {SKELETON}")
        elif self.model.is_accepted:
            self.status_label.setText("✔")
            self.status_label.setStyleSheet(f"color: {ACCEPTED}; background: transparent")
        else:
            self.status_label.clear()
            self.status_label.setStyleSheet("background: transparent")

    def mousePressEvent(self, event) -> None:  # noqa: N802
        self.clicked.emit(self.model.user.id)
        super().mousePressEvent(event)

    def dispose(self) -> None:
        self._unsubscribe()
        self.model.dispose()


class FriendCardSkeleton(QFrame):
    """Placeholder card shown while the friend list loads."""

    def __init__(self, parent: QWidget | None = None):
        super().__init__(parent)
        self.setStyleSheet(
            f"FriendCardSkeleton {{ border: 1px solid {CARD_BORDER}; border-radius: {CARD_RADIUS}px; }}"
        )
        layout = QVBoxLayout(self)
        layout.addWidget(AvatarLabel(""))
        name = QLabel("Name")
        name.setStyleSheet(f"background: {SKELETON}; color: {SKELETON}")
        layout.addWidget(name)


class MessagesPanel(QWidget):
    """Conversation view with a live-updates toggle and a message input."""

    toast = pyqtSignal(object)

    def __init__(self, model: MessagesPanelModel, parent: QWidget | None = None):
        super().__init__(parent)
        self.model = model
        self.model.notify = self.toast.emit
        self._build_ui()
        self.poller = QTimer(self)
        self.poller.setInterval(LIVE_UPDATE_INTERVAL_MS)
        self.poller.timeout.connect(self._poll_messages)
        self._unsubscribers = [
            model.messages_query.subscribe(lambda _state: self.render()),
            model.status_query.subscribe(lambda _state: self.render()),
        ]
        model.load()
        self.render()

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        header = QHBoxLayout()
        header.addStretch()
        self.live_button = QPushButton("Live updates")
        self.live_button.setCheckable(True)
        self.live_button.clicked.connect(self._toggle_live_updates)
        header.addWidget(self.live_button)
        layout.addLayout(header)

        self.messages_view = QTextEdit()
        self.messages_view.setReadOnly(True)
        self.messages_view.setWordWrapMode(QTextOption.WrapMode.WordWrap)
        layout.addWidget(self.messages_view, 1)

        self.message_input = QLineEdit()
        self.message_input.setPlaceholderText("Type your message here...")
        self.message_input.textChanged.connect(self._draft_changed)
        self.message_input.returnPressed.connect(self._send_message)
        layout.addWidget(self.message_input)

    def _format_group(self, group: MessageGroup) -> str:
        lines = []
        for message in group.visible_messages:
            color = TEXT_MUTED if message.pending else TEXT_PRIMARY
            lines.append(f'<div style="margin-top:4px; color:{color};">{html.escape(message.content)}</div>')
        return (
            '<table style="margin-bottom:12px;"><tr>'
            f'<td valign="top"><span style="background:{SKELETON}; padding:8px;">'
            f"{html.escape(group.initials)}</span></td>"
            f'<td style="padding-left:8px;"><b>{html.escape(group.sender.name or "")}</b>{"".join(lines)}</td>'
            "</tr></table>"
        )

    def render(self) -> None:
        model = self.model
        dot = ACCEPTED if model.live_updates else LIVE_OFF
        self.live_button.setChecked(model.live_updates)
        self.live_button.setStyleSheet(f"border-left: 8px solid {dot}; padding-left: 6px")
        self.message_input.setEnabled(model.can_send and not model.is_sending)
        if self.message_input.text() != model.draft:
            self.message_input.setText(model.draft)

        if model.empty_state:
            body = "".join(
                f'<p align="center" style="color:{TEXT_MUTED};">{html.escape(line)}</p>' for line in model.empty_state
            )
        else:
            body = "".join(self._format_group(group) for group in model.groups)
        self.messages_view.setHtml(body)
        scrollbar = self.messages_view.verticalScrollBar()
        scrollbar.setValue(scrollbar.maximum())

    def _draft_changed(self, text: str) -> None:
        self.model.draft = text

    def _toggle_live_updates(self) -> None:
        if self.model.toggle_live_updates():
            self.poller.start()
        else:
            self.poller.stop()
        self.render()

    def _poll_messages(self) -> None:
        self.model.poll()

    def _send_message(self) -> None:
        self.model.submit()
        self.render()

    def dispose(self) -> None:
        self.poller.stop()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self.model.dispose()


class MainChatWindow(QMainWindow):
    """Main UI with friend cards, requests and the messages panel."""

    logged_out = pyqtSignal()

    def __init__(self, controller: ChatController):
        super().__init__()
        self.controller = controller
        self.query_client = QueryClient()
        self.cards: List[FriendCard] = []
        self.panel: Optional[MessagesPanel] = None
        self.user_cache: Dict[int, User] = {}
        self.setWindowTitle("Social Chat")
        self.resize(1024, 720)
        self._build_ui()
        self.refresh_friends()

    def _build_ui(self) -> None:
        container = QWidget()
        layout = QHBoxLayout(container)
        layout.addWidget(self._build_sidebar(), 1)

        self.chat_area = QWidget()
        self.chat_layout = QVBoxLayout(self.chat_area)
        self.chat_title = QLabel("Select a friend")
        self.chat_title.setStyleSheet("font-size: 16px; font-weight: bold")
        self.chat_layout.addWidget(self.chat_title)
        layout.addWidget(self.chat_area, 3)

        container.setStyleSheet(
            f"QWidget {{ background: {PRIMARY_BG}; color: {TEXT_PRIMARY}; }}\n"
            f"QLineEdit, QTextEdit {{ background: white; border: 1px solid {CARD_BORDER}; border-radius: {BORDER_RADIUS}px; }}\n"
            f"QPushButton {{ background: {ACCENT}; color: white; padding: 6px 12px; border-radius: {BORDER_RADIUS}px; }}\n"
            f"QPushButton:hover {{ background: #2563eb; }}"
        )
        self.setCentralWidget(container)

    def _build_sidebar(self) -> QWidget:
        widget = QWidget()
        widget.setStyleSheet(f"background: {SIDEBAR_BG}; color: white")
        layout = QVBoxLayout(widget)
        layout.setContentsMargins(PADDING, PADDING, PADDING, PADDING)

        user = self.controller.user
        profile_box = QGroupBox("Profile")
        profile_layout = QVBoxLayout(profile_box)
        profile_layout.addWidget(QLabel(user.name if user else ""))
        logout_btn = QPushButton("Log out")
        logout_btn.clicked.connect(self._logout)
        profile_layout.addWidget(logout_btn)
        layout.addWidget(profile_box)

        search_box = QGroupBox("Find people")
        search_layout = QHBoxLayout(search_box)
        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("Name")
        search_btn = QPushButton("Add friend")
        search_btn.clicked.connect(self._add_friend)
        search_layout.addWidget(self.search_input)
        search_layout.addWidget(search_btn)
        layout.addWidget(search_box)

        requests_box = QGroupBox("Friend requests")
        requests_layout = QVBoxLayout(requests_box)
        self.requests_list = QListWidget()
        requests_layout.addWidget(self.requests_list)
        buttons = QHBoxLayout()
        accept_btn = QPushButton("Accept")
        decline_btn = QPushButton("Decline")
        accept_btn.clicked.connect(self._accept_request)
        decline_btn.clicked.connect(self._decline_request)
        buttons.addWidget(accept_btn)
        buttons.addWidget(decline_btn)
        requests_layout.addLayout(buttons)
        layout.addWidget(requests_box)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        cards_host = QWidget()
        self.cards_layout = QVBoxLayout(cards_host)
        self.cards_layout.addWidget(FriendCardSkeleton())
        self.cards_layout.addStretch()
        scroll.setWidget(cards_host)
        layout.addWidget(scroll, 1)
        return widget

    def _clear_cards(self) -> None:
        for card in self.cards:
            card.dispose()
        while self.cards_layout.count():
            item = self.cards_layout.takeAt(0)
            if item.widget():
                item.widget().deleteLater()
        self.cards = []

    def refresh_friends(self) -> None:
        try:
            friends = self.controller.list_friends()
        except Exception as exc:  # noqa: BLE001
            QMessageBox.warning(self, "Error", f"Failed to load friends: {describe_error(exc)}")
            return
        self._clear_cards()
        self.requests_list.clear()
        for friend in friends:
            self.user_cache[friend.user.id] = friend.user
            if friend.status == "pending_received":
                self._add_request_item(friend)
            card = FriendCard(FriendCardModel(friend.user, self.controller, self.query_client))
            card.clicked.connect(self._open_chat)
            card.model.load()
            self.cards.append(card)
            self.cards_layout.addWidget(card)
        self.cards_layout.addStretch()

    def _add_request_item(self, friend: Friend) -> None:
        item = QListWidgetItem(friend.user.name)
        item.setData(Qt.ItemDataRole.UserRole, friend.id)
        self.requests_list.addItem(item)

    def _selected_request_id(self) -> Optional[int]:
        items = self.requests_list.selectedItems()
        return items[0].data(Qt.ItemDataRole.UserRole) if items else None

    def _accept_request(self) -> None:
        friendship_id = self._selected_request_id()
        if friendship_id is None:
            return
        try:
            friend = self.controller.accept_friend_request(friendship_id)
        except Exception as exc:  # noqa: BLE001
            self.show_toast(Toast("Could not accept request", describe_error(exc), "destructive"))
            return
        self.query_client.invalidate_queries((friend.user.id,))
        self.refresh_friends()

    def _decline_request(self) -> None:
        friendship_id = self._selected_request_id()
        if friendship_id is None:
            return
        try:
            self.controller.decline_friend_request(friendship_id)
        except Exception as exc:  # noqa: BLE001
            self.show_toast(Toast("Could not decline request", describe_error(exc), "destructive"))
            return
        self.refresh_friends()

    def _add_friend(self) -> None:
        name = self.search_input.text().strip()
        if not name:
            return
        try:
            users = [u for u in self.controller.list_users(name=name) if u.id != self.controller.user.id]
        except Exception as exc:  # noqa: BLE001
            QMessageBox.warning(self, "Error", f"Search failed: {describe_error(exc)}")
            return
        if not users:
            QMessageBox.information(self, "Not found", "No user with that name")
            return
        choices = {user_choice_label(u): u for u in users}
        label, ok = QInputDialog.getItem(self, "Add friend", "Send a friend request to:", list(choices), 0, False)
        if not ok:
            return
        target = choices[label]
        try:
            self.controller.send_friend_request(target.id)
        except Exception as exc:  # noqa: BLE001
            self.show_toast(Toast("Could not send request", describe_error(exc), "destructive"))
            return
        self.show_toast(Toast(f"Friend request sent to {target.name}"))
        self.refresh_friends()

    def _open_chat(self, friend_id: int) -> None:
        if self.panel is not None:
            self.panel.dispose()
            self.panel.deleteLater()
        peer = self.user_cache.get(friend_id)
        if peer is None:
            try:
                peer = self.user_cache[friend_id] = self.controller.get_user(friend_id)
            except Exception as exc:  # noqa: BLE001
                self.show_toast(Toast("Could not load user", describe_error(exc), "destructive"))
        self.chat_title.setText(f"Chat with {peer.name if peer else friend_id}")
        model = MessagesPanelModel(friend_id, self.controller.user, self.controller, self.query_client)
        self.panel = MessagesPanel(model)
        self.panel.toast.connect(self.show_toast)
        self.chat_layout.addWidget(self.panel, 1)

    def show_toast(self, toast: Toast) -> None:
        if toast.variant == "destructive":
            QMessageBox.warning(self, toast.title, toast.description or "")
        else:
            self.statusBar().showMessage(toast.title, TOAST_TIMEOUT_MS)

    def _logout(self) -> None:
        try:
            self.controller.logout()
        except Exception as exc:  # noqa: BLE001
            QMessageBox.warning(self, "Error", f"Logout failed on server: {describe_error(exc)}")
        self.logged_out.emit()
        self.close()


class ChatApplication:
    """Top-level class wiring windows together."""

    def __init__(self):
        self.app = QApplication.instance() or QApplication([])
        self.controller = ChatController()
        self.login_window = LoginWindow(self.controller)
        self.main_window: Optional[MainChatWindow] = None
        self.login_window.logged_in.connect(self._on_logged_in)

    def _on_logged_in(self) -> None:
        self.main_window = MainChatWindow(self.controller)
        self.main_window.logged_out.connect(self._show_login)
        self.login_window.hide()
        self.main_window.show()

    def _show_login(self) -> None:
        self.login_window.show()
        if self.main_window:
            self.main_window.close()
            self.main_window = None

    def run(self) -> int:
        self.login_window.show()
        return self.app.exec()


__all__ = ["ChatApplication", "FriendCard", "LoginWindow", "MainChatWindow", "MessagesPanel"]
