"""TCP client speaking the length-prefixed JSON command protocol."""

from __future__ import annotations

import json
import logging
import select
import socket
import time
import uuid
from datetime import datetime
from typing import Any, Iterable

from .events import Signal
from .framing import PacketDecoder, encode_message

log = logging.getLogger(__name__)

CONNECT_TIMEOUT = 5.0
_RECV_SIZE = 65536


def _obj(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return 0


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


class ClientSocket:
    """Sends commands to the server and turns its replies into signals."""

    def __init__(self) -> None:
        self._sock: socket.socket | None = None
        self._decoder = PacketDecoder()
        self.session_id = ""
        self.current_user_id = ""
        self.last_action = ""
        self.last_target = ""

        self.connected = Signal()
        self.disconnected = Signal()
        self.error_occurred = Signal()

        self.login_response = Signal()
        self.logout_response = Signal()
        self.registration_response = Signal()

        self.product_list_received = Signal()
        self.product_received = Signal()
        self.product_created = Signal()
        self.product_updated = Signal()
        self.product_deleted = Signal()

        self.order_created = Signal()
        self.order_received = Signal()
        self.order_list_received = Signal()
        self.order_updated = Signal()

        self.order_item_added = Signal()
        self.order_item_updated = Signal()
        self.order_item_removed = Signal()

        self.chat_room_created = Signal()
        self.chat_room_joined = Signal()
        self.chat_room_left = Signal()
        self.chat_room_list_received = Signal()
        self.chat_message_sent = Signal()
        self.chat_history_received = Signal()
        self.chat_message_received = Signal()

        self.post_created = Signal()
        self.post_list_received = Signal()
        self.post_received = Signal()

        self.plant_received = Signal()

    def __enter__(self) -> ClientSocket:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.disconnect_from_server()

    # connection management

    def connect_to_server(self, host: str, port: int) -> bool:
        """Connect within five seconds; True if connected (or already was)."""
        if self.is_connected():
            log.debug("Already connected to server")
            return True
        log.debug("Connecting to JSON server: %s:%s", host, port)
        try:
            sock = socket.create_connection((host, port), timeout=CONNECT_TIMEOUT)
        except OSError as exc:
            self.error_occurred.emit(str(exc))
            return False
        sock.settimeout(None)
        self._sock = sock
        self._decoder = PacketDecoder()
        log.debug("Connected to JSON server")
        self.connected.emit()
        return True

    def disconnect_from_server(self) -> None:
        if self.is_connected():
            self._on_disconnected()

    def is_connected(self) -> bool:
        return self._sock is not None

    def is_logged_in(self) -> bool:
        return bool(self.current_user_id)

    def _current_user_int(self) -> int:
        try:
            return int(self.current_user_id)
        except ValueError:
            return 0

    def _on_disconnected(self) -> None:
        if self._sock is not None:
            try:
                self._sock.close()
            except OSError:
                pass
            self._sock = None
        log.debug("Disconnected from JSON server")
        self.session_id = ""
        self.current_user_id = ""
        self.last_action = ""
        self.last_target = ""
        self.disconnected.emit()

    # authentication

    def login(self, str_id: str, password: str) -> bool:
        return self._command("login", "user", {"strId": str_id, "password": password})

    def logout(self) -> bool:
        return self._command("logout", "user")

    def register_user(
        self, str_id: str, password: str, name: str, email: str, address: str
    ) -> bool:
        return self._command(
            "register",
            "user",
            {
                "strId": str_id,
                "password": password,
                "name": name,
                "email": email,
                "address": address,
                "level": 2,
            },
        )

    # products

    def request_product_list(self) -> bool:
        return self._command("list", "product")

    def request_product(self, product_id: int) -> bool:
        return self._command("get", "product", {"productId": product_id})

    def create_product(self, name: str, category: str, price: float, stock: int) -> bool:
        return self._command(
            "create",
            "product",
            {"name": name, "category": category, "price": price, "stock": stock},
        )

    def update_product(
        self, product_id: int, name: str, category: str, price: float, stock: int
    ) -> bool:
        return self._command(
            "update",
            "product",
            {
                "productId": product_id,
                "name": name,
                "category": category,
                "price": price,
                "stock": stock,
            },
        )

    def delete_product(self, product_id: int) -> bool:
        return self._command("delete", "product", {"productId": product_id})

    # orders

    def create_order(self, user_id: int, product_quantities: Iterable[tuple[int, int]]) -> bool:
        return self._command(
            "create",
            "order",
            {
                "userId": user_id if user_id > 0 else self._current_user_int(),
                "orderDate": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
                "orderItems": [
                    {"productId": product_id, "quantity": quantity}
                    for product_id, quantity in product_quantities
                ],
            },
        )

    def request_order(self, order_id: int) -> bool:
        return self._command("get", "order", {"orderId": order_id})

    def request_order_list(self, user_id: int = -1) -> bool:
        parameters: dict[str, Any] = {}
        if user_id > 0:
            parameters["userId"] = user_id
        elif self.current_user_id:
            parameters["userId"] = self._current_user_int()
        return self._command("list", "order", parameters)

    def update_order_status(self, order_id: int, status: str) -> bool:
        return self._command("update", "order", {"orderId": order_id, "status": status})

    # chat

    def create_chat_room(self, room_name: str, user_ids: Iterable[int]) -> bool:
        return self._command(
            "create",
            "chatroom",
            {
                "chatRoomName": room_name,
                "userIds": {f"userId{i}": uid for i, uid in enumerate(user_ids)},
            },
        )

    def join_chat_room(self, chat_room_id: int, user_id: int) -> bool:
        return self._command(
            "join",
            "chatroom",
            {
                "chatRoomId": chat_room_id,
                "userId": user_id if user_id > 0 else self._current_user_int(),
            },
        )

    def leave_chat_room(self, chat_room_id: int, user_id: int) -> bool:
        return self._command(
            "leave",
            "chatroom",
            {
                "chatRoomId": chat_room_id,
                "userId": user_id if user_id > 0 else self._current_user_int(),
            },
        )

    def send_chat_message(self, chat_room_id: int, message: str) -> bool:
        return self._command("send", "chat", {"chatRoomId": chat_room_id, "chatStr": message})

    def request_chat_history(self, chat_room_id: int) -> bool:
        return self._command("history", "chat", {"chatRoomId": chat_room_id})

    def request_chat_room_list(self) -> bool:
        return self._command("list", "chatroom")

    # order items

    def add_order_item(
        self, order_id: int, product_id: int, quantity: int, unit_price: float
    ) -> bool:
        return self._command(
            "add",
            "orderitem",
            {
                "orderId": order_id,
                "productId": product_id,
                "quantity": quantity,
                "unitPrice": unit_price,
            },
        )

    def update_order_item(self, item_id: int, quantity: int, unit_price: float) -> bool:
        return self._command(
            "update",
            "orderitem",
            {"itemId": item_id, "quantity": quantity, "unitPrice": unit_price},
        )

    def remove_order_item(self, item_id: int) -> bool:
        return self._command("remove", "orderitem", {"itemId": item_id})

    # messages

    def create_command_message(
        self, action: str, target: str, parameters: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Build a command message and remember it as the latest request."""
        body: dict[str, Any] = {"action": action, "target": target}
        if parameters:
            body["parameters"] = parameters
        self.last_action = action
        self.last_target = target
        return {
            "header": {
                "messageId": str(uuid.uuid4()),
                "messageType": "command",
                "timestamp": int(time.time()),
            },
            "body": body,
        }

    def send_message(self, message: dict[str, Any]) -> bool:
        """Frame and send a message; False (with error_occurred) on failure."""
        if self._sock is None:
            self.error_occurred.emit("Not connected to server")
            return False
        packet = encode_message(message)
        try:
            self._sock.sendall(packet)
        except OSError:
            self.error_occurred.emit("Failed to send message")
            return False
        log.debug("JSON message sent: %s", packet[4:])
        return True

    def _command(
        self, action: str, target: str, parameters: dict[str, Any] | None = None
    ) -> bool:
        return self.send_message(self.create_command_message(action, target, parameters))

    # incoming data

    def poll(self, timeout: float = 0.0) -> int:
        """Wait up to timeout seconds for data; return the messages handled."""
        if self._sock is None:
            return 0
        readable, _, _ = select.select([self._sock], [], [], timeout)
        if not readable:
            return 0
        try:
            data = self._sock.recv(_RECV_SIZE)
        except OSError as exc:
            self.error_occurred.emit(str(exc))
            self._on_disconnected()
            return 0
        if not data:
            self._on_disconnected()
            return 0
        return self.receive(data)

    def receive(self, data: bytes) -> int:
        """Process raw stream bytes; return the number of messages parsed."""
        handled = 0
        for payload in self._decoder.feed(data):
            try:
                document = json.loads(payload)
            except ValueError as exc:
                log.debug("JSON parse error: %s", exc)
                continue
            message = _obj(document)
            message_type = _str(_obj(message.get("header")).get("messageType"))
            if message_type == "response":
                self._handle_response(message)
            elif message_type == "event":
                self._handle_event(message)
            handled += 1
        return handled

    def _handle_response(self, response: dict[str, Any]) -> None:
        body = _obj(response.get("body"))
        success = _str(body.get("status")) == "success"
        data = _obj(body.get("data"))

        target, action = self.last_target, self.last_action
        if "sessionId" in data:
            target, action = "user", "login"
        elif "products" in data:
            target, action = "product", "list"
        elif "orders" in data:
            target, action = "order", "list"
        elif "messages" in data:
            target, action = "chat", "history"

        if target == "user":
            if action == "login":
                if success:
                    self.session_id = _str(data.get("sessionId"))
                    self.current_user_id = str(_int(data.get("userId")))
                self.login_response.emit(success, data)
            elif action == "logout":
                if success:
                    self.session_id = ""
                    self.current_user_id = ""
                self.logout_response.emit(success)
            elif action == "register":
                self.registration_response.emit(success, data)
            elif action == "get":
                if success:
                    self.product_received.emit(data)
            elif action == "update":
                if success:
                    self.registration_response.emit(success, data)
        elif target == "product":
            if action == "list":
                if success and "products" in data:
                    self.product_list_received.emit(_list(data.get("products")))
            elif action == "get":
                if success:
                    self.product_received.emit(data)
            elif action == "create":
                if success:
                    self.product_created.emit(data)
            elif action == "update":
                if success:
                    self.product_updated.emit(data)
            elif action == "delete":
                self.product_deleted.emit(success)
        elif target == "chatroom":
            if action == "create":
                if success:
                    self.chat_room_created.emit(data)
            elif action == "join":
                if success:
                    self.chat_room_joined.emit(data)
            elif action == "leave":
                self.chat_room_left.emit(success)
            elif action == "list" and "rooms" in data:
                self.chat_room_list_received.emit(_list(data.get("rooms")))
        elif target == "chat":
            if action == "send":
                if success:
                    self.chat_message_sent.emit(data)
            elif action == "history":
                if success and "messages" in data:
                    self.chat_history_received.emit(_list(data.get("messages")))
        elif target == "post":
            if action == "create":
                if success:
                    self.post_created.emit(data)
            elif action == "list":
                if success and "posts" in data:
                    self.post_list_received.emit(_list(data.get("posts")))
            elif action == "get":
                if success:
                    self.post_received.emit(data)
        elif target == "plant":
            if action == "get" and success:
                self.plant_received.emit(data)
        else:
            if "productId" in data and "products" not in data:
                self.product_received.emit(data)
            elif "orderId" in data and "orders" not in data:
                self.order_received.emit(data)
            elif "chatRoomName" in data and "messages" not in data:
                self.chat_room_created.emit(data)

        if not success:
            error = _obj(body.get("error"))
            code = _str(error.get("code"))
            description = _str(error.get("description"))
            self.error_occurred.emit(f"Error {code}: {description}")

    def _handle_event(self, event: dict[str, Any]) -> None:
        body = _obj(event.get("body"))
        if _str(body.get("eventType")) == "chat_message":
            self.chat_message_received.emit(_obj(body.get("data")))