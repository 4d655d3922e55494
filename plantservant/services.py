"""Services that wrap the client socket per domain and relay its replies."""

from __future__ import annotations

import logging
from typing import Any

from .client import ClientSocket
from .entities import Plant, Post
from .events import Signal

log = logging.getLogger(__name__)

LOGIN_FAILED_REASON = "아이디나 비밀번호가 잘못되었습니다."
REGISTRATION_FAILED_REASON = "회원가입에 실패했습니다."


class ChatService:
    """Chat room and message requests, with the socket's chat signals relayed."""

    def __init__(self, socket: ClientSocket) -> None:
        self.socket = socket
        self.chat_room_list_received = Signal()
        self.chat_room_joined = Signal()
        self.chat_room_left = Signal()
        self.chat_message_sent = Signal()
        self.chat_message_received = Signal()
        self.chat_history_received = Signal()

        socket.chat_room_list_received.connect(self.chat_room_list_received.emit)
        socket.chat_room_joined.connect(self.chat_room_joined.emit)
        socket.chat_room_left.connect(self.chat_room_left.emit)
        socket.chat_message_sent.connect(self.chat_message_sent.emit)
        socket.chat_message_received.connect(self.chat_message_received.emit)
        socket.chat_history_received.connect(self.chat_history_received.emit)

    def request_chat_room_list(self) -> bool:
        return self.socket.request_chat_room_list()

    def join_chat_room(self, room_id: int, user_id: int) -> bool:
        return self.socket.join_chat_room(room_id, user_id)

    def leave_chat_room(self, room_id: int, user_id: int) -> bool:
        return self.socket.leave_chat_room(room_id, user_id)

    def send_message(self, room_id: int, message: str) -> bool:
        return self.socket.send_chat_message(room_id, message)

    def request_chat_history(self, room_id: int) -> bool:
        return self.socket.request_chat_history(room_id)


class PlantService:
    """Requests a user's plant and emits it as a Plant on plant_info_ready."""

    def __init__(self, socket: ClientSocket) -> None:
        self.socket = socket
        self.plant_info_ready = Signal()
        socket.plant_received.connect(self._on_plant_received)

    def request_plant_info(self, user_id: int) -> bool:
        message = self.socket.create_command_message("get", "plant", {"userId": int(user_id)})
        sent = self.socket.send_message(message)
        log.debug("Plant info request sent: %s", message)
        return sent

    def _on_plant_received(self, data: dict[str, Any]) -> None:
        self.plant_info_ready.emit(Plant.from_json(data))


class PostService:
    """Creates and fetches posts; single posts arrive as Post objects."""

    def __init__(self, socket: ClientSocket) -> None:
        self.socket = socket
        self.post_created = Signal()
        self.post_list_received = Signal()
        self.post_received = Signal()

        socket.post_created.connect(self.post_created.emit)
        socket.post_list_received.connect(self.post_list_received.emit)
        socket.post_received.connect(self._on_post_received)

    def create_post(self, post: Post) -> bool:
        parameters = post.to_json()
        log.debug("Post to send: %s", parameters)
        message = self.socket.create_command_message("create", "post", parameters)
        return self.socket.send_message(message)

    def request_post_list(self) -> bool:
        message = self.socket.create_command_message("list", "post")
        return self.socket.send_message(message)

    def request_post(self, post_id: int) -> bool:
        message = self.socket.create_command_message("get", "post", {"postId": int(post_id)})
        sent = self.socket.send_message(message)
        log.debug("Post request sent: %s", message)
        return sent

    def _on_post_received(self, data: dict[str, Any]) -> None:
        log.debug("Post received: %s", data)
        self.post_received.emit(Post.from_json(data))


class UserService:
    """Login, registration and logout, reported as success or failure signals."""

    def __init__(self, socket: ClientSocket) -> None:
        self.socket = socket
        self.login_success = Signal()
        self.login_failed = Signal()
        self.registration_success = Signal()
        self.registration_failed = Signal()
        self.logout_success = Signal()
        self.logout_failed = Signal()

        socket.login_response.connect(self._on_login_response)
        socket.registration_response.connect(self._on_registration_response)
        socket.logout_response.connect(self._on_logout_response)

    def login(self, str_id: str, password: str) -> bool:
        return self.socket.login(str_id, password)

    def register_user(
        self, str_id: str, password: str, name: str, email: str, address: str
    ) -> bool:
        return self.socket.register_user(str_id, password, name, email, address)

    def logout(self) -> bool:
        return self.socket.logout()

    def _on_login_response(self, success: bool, data: dict[str, Any]) -> None:
        if success:
            self.login_success.emit(data)
        else:
            self.login_failed.emit(LOGIN_FAILED_REASON)

    def _on_registration_response(self, success: bool, data: dict[str, Any]) -> None:
        if success:
            self.registration_success.emit(data)
        else:
            self.registration_failed.emit(REGISTRATION_FAILED_REASON)

    def _on_logout_response(self, success: bool) -> None:
        if success:
            self.logout_success.emit()
        else:
            self.logout_failed.emit()