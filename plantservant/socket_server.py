"""TCP server speaking the length-prefixed JSON protocol, with user tracking."""

from __future__ import annotations

import json
import logging
import select
import socket
import uuid
from typing import Any

from .events import Signal
from .framing import PacketDecoder, encode_message

log = logging.getLogger(__name__)

DEFAULT_ADDRESS = "0.0.0.0"
DEFAULT_PORT = 5105
_RECV_SIZE = 65536


class ClientConnection:
    """One connected client: decodes its packets and sends JSON back."""

    def __init__(self, sock: socket.socket, client_id: str | None = None) -> None:
        self._sock: socket.socket | None = sock
        self._decoder = PacketDecoder()
        self.client_id = client_id or str(uuid.uuid4())[:8]
        self.user_id = ""

        try:
            peer: Any = sock.getpeername()
        except OSError:
            peer = None
        if isinstance(peer, tuple):
            self.client_address, self.client_port = str(peer[0]), int(peer[1])
        else:
            self.client_address, self.client_port = (peer if isinstance(peer, str) else ""), 0

        self.json_data_received = Signal()
        self.client_disconnected = Signal()
        self.user_logged_out = Signal()
        self.error_occurred = Signal()

        log.debug("JSON client connected: %s from %s", self.client_id, self.client_address)

    def _log_id(self) -> str:
        return f"user:{self.user_id}" if self.is_logged_in() else f"client:{self.client_id}"

    def fileno(self) -> int:
        return self._sock.fileno() if self._sock is not None else -1

    def is_logged_in(self) -> bool:
        return bool(self.user_id)

    def is_connected(self) -> bool:
        return self._sock is not None

    def send_json(self, message: Any) -> bool:
        """Frame and send a JSON value; False (with error_occurred) on failure."""
        if self._sock is None:
            self.error_occurred.emit(self.client_id, "Client not connected")
            return False
        try:
            self._sock.sendall(encode_message(message))
        except OSError:
            self.error_occurred.emit(self.client_id, "Failed to send JSON data")
            return False
        log.debug("JSON sent to %s", self._log_id())
        return True

    def send_json_string(self, text: str) -> bool:
        """Parse JSON text, then send it; invalid text is reported, not sent."""
        try:
            document = json.loads(text)
        except ValueError as exc:
            self.error_occurred.emit(self.client_id, f"Invalid JSON: {exc}")
            return False
        return self.send_json(document)

    def receive(self, data: bytes) -> int:
        """Process raw stream bytes; return the number of JSON messages emitted."""
        emitted = 0
        for payload in self._decoder.feed(data):
            try:
                document = json.loads(payload)
            except ValueError as exc:
                self.error_occurred.emit(self.client_id, f"JSON parse error: {exc}")
                continue
            message = document if isinstance(document, dict) else {}
            log.debug("JSON received from %s", self._log_id())
            self.json_data_received.emit(self.client_id, message)
            emitted += 1
        return emitted

    def _read_available(self) -> int:
        if self._sock is None:
            return 0
        try:
            data = self._sock.recv(_RECV_SIZE)
        except OSError as exc:
            log.debug("JSON client socket error for %s: %s", self._log_id(), exc)
            self.error_occurred.emit(self.client_id, str(exc))
            self.close()
            return 0
        if not data:
            self.close()
            return 0
        return self.receive(data)

    def _release(self) -> None:
        if self._sock is not None:
            try:
                self._sock.close()
            except OSError:
                pass
            self._sock = None

    def close(self) -> None:
        """Close the socket and announce the disconnection (once)."""
        if self._sock is None:
            return
        self._release()
        if self.is_logged_in():
            log.debug("JSON client disconnected: user:%s (client:%s)", self.user_id, self.client_id)
            self.user_logged_out.emit(self.user_id)
        else:
            log.debug("JSON client disconnected: client:%s", self.client_id)
        self.client_disconnected.emit(self.client_id)


class SocketServer:
    """Accepts clients, routes JSON to clients or logged-in users, and broadcasts."""

    def __init__(self) -> None:
        self._server: socket.socket | None = None
        self._clients: dict[str, ClientConnection] = {}
        self._user_to_client: dict[str, str] = {}
        self._client_to_user: dict[str, str] = {}

        self.client_connected = Signal()
        self.client_disconnected = Signal()
        self.user_logged_in = Signal()
        self.user_logged_out = Signal()
        self.json_data_received = Signal()
        self.server_started = Signal()
        self.server_stopped = Signal()
        self.error_occurred = Signal()

    def __enter__(self) -> SocketServer:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop_server()

    # server control

    def start_server(self, address: str | int = DEFAULT_ADDRESS, port: int = DEFAULT_PORT) -> bool:
        """Listen on address:port; a bare int is taken as the port on any address."""
        if isinstance(address, int):
            address, port = DEFAULT_ADDRESS, address
        if self._server is not None:
            self.error_occurred.emit("JSON server is already listening")
            return False
        try:
            server = socket.create_server((address, port))
        except OSError as exc:
            error = f"Failed to start JSON server: {exc}"
            log.debug(error)
            self.error_occurred.emit(error)
            return False
        server.setblocking(False)
        self._server = server
        log.debug("JSON server started on %s:%s", self.server_address(), self.server_port())
        self.server_started.emit(self.server_address(), self.server_port())
        return True

    def stop_server(self) -> None:
        if self._server is None:
            return
        clients = list(self._clients.values())
        self._clients.clear()
        self._user_to_client.clear()
        self._client_to_user.clear()
        for client in clients:
            client._release()
        self._server.close()
        self._server = None
        log.debug("JSON server stopped")
        self.server_stopped.emit()

    def is_listening(self) -> bool:
        return self._server is not None

    # client management

    def connected_clients(self) -> list[str]:
        return sorted(self._clients)

    def logged_in_users(self) -> list[str]:
        return sorted(self._user_to_client)

    def client_count(self) -> int:
        return len(self._clients)

    def logged_in_user_count(self) -> int:
        return len(self._user_to_client)

    def get_client(self, client_id: str) -> ClientConnection | None:
        return self._clients.get(client_id)

    def get_client_by_user_id(self, user_id: str) -> ClientConnection | None:
        client_id = self._user_to_client.get(user_id, "")
        return self._clients.get(client_id) if client_id else None

    def add_client(self, connection: ClientConnection) -> None:
        """Take ownership of a connection and relay its signals."""
        connection.client_disconnected.connect(self.remove_client)
        connection.user_logged_out.connect(self.user_logged_out.emit)
        connection.json_data_received.connect(self.json_data_received.emit)
        connection.error_occurred.connect(self._on_client_error)
        self._clients[connection.client_id] = connection
        self.client_connected.emit(connection.client_id, connection.client_address)

    def remove_client(self, client_id: str) -> None:
        """Forget a client, its login, and close its socket."""
        connection = self._clients.pop(client_id, None)
        if connection is None:
            return
        user_id = self._client_to_user.pop(client_id, None)
        if user_id is not None:
            self._user_to_client.pop(user_id, None)
        connection._release()
        self.client_disconnected.emit(client_id)

    def set_user_logged_in(self, client_id: str, user_id: str) -> None:
        """Bind a user to a client, taking the user away from any other client."""
        client = self.get_client(client_id)
        if client is None:
            return
        old_user = self._client_to_user.get(client_id)
        if old_user is not None:
            self._user_to_client.pop(old_user, None)
        old_client_id = self._user_to_client.get(user_id)
        if old_client_id is not None:
            old_client = self.get_client(old_client_id)
            if old_client is not None:
                old_client.user_id = ""
            self._client_to_user.pop(old_client_id, None)

        client.user_id = user_id
        self._user_to_client[user_id] = client_id
        self._client_to_user[client_id] = user_id
        log.debug("User logged in: %s on client: %s", user_id, client_id)
        self.user_logged_in.emit(user_id, client_id)

    def set_user_logged_out(self, client_id: str) -> None:
        user_id = self._client_to_user.pop(client_id, None)
        if user_id is None:
            return
        client = self.get_client(client_id)
        if client is not None:
            client.user_id = ""
        self._user_to_client.pop(user_id, None)
        log.debug("User logged out: %s from client: %s", user_id, client_id)
        self.user_logged_out.emit(user_id)

    # sending

    @staticmethod
    def _send(client: ClientConnection, message: Any) -> bool:
        if isinstance(message, str):
            return client.send_json_string(message)
        return client.send_json(message)

    def send_json_to_client(self, client_id: str, message: Any) -> bool:
        """Send a JSON value, or JSON text, to one client."""
        client = self.get_client(client_id)
        if client is None:
            self.error_occurred.emit(f"Client not found: {client_id}")
            return False
        return self._send(client, message)

    def send_json_to_user(self, user_id: str, message: Any) -> bool:
        """Send to the client a user is logged in on; False if there is none."""
        client = self.get_client_by_user_id(user_id)
        if client is None:
            if isinstance(message, str):
                self.error_occurred.emit(f"User not found or not logged in: {user_id}")
            return False
        return self._send(client, message)

    def broadcast_json(self, message: Any) -> None:
        for client in list(self._clients.values()):
            self._send(client, message)

    def broadcast_to_users(self, user_ids: list[str], message: Any) -> None:
        for user_id in user_ids:
            self.send_json_to_user(user_id, message)

    # information

    def server_address(self) -> str:
        return str(self._server.getsockname()[0]) if self._server is not None else ""

    def server_port(self) -> int:
        return int(self._server.getsockname()[1]) if self._server is not None else 0

    def server_info(self) -> str:
        if not self.is_listening():
            return "JSON server is not running"
        return (
            f"JSON server listening on {self.server_address()}:{self.server_port()} "
            f"({self.client_count()} clients, {self.logged_in_user_count()} logged in)"
        )

    # event loop

    def poll(self, timeout: float = 0.0) -> int:
        """Accept and read whatever is ready within timeout; return messages received."""
        if self._server is None:
            return 0
        watched: list[Any] = [self._server, *self._clients.values()]
        readable, _, _ = select.select(watched, [], [], timeout)
        received = 0
        for item in readable:
            if item is self._server:
                self._accept_pending()
            elif isinstance(item, ClientConnection) and item.is_connected():
                received += item._read_available()
        return received

    def _accept_pending(self) -> None:
        while self._server is not None:
            try:
                sock, _ = self._server.accept()
            except (BlockingIOError, InterruptedError):
                return
            except OSError as exc:
                self.error_occurred.emit(str(exc))
                return
            sock.setblocking(True)
            self.add_client(ClientConnection(sock))

    def _on_client_error(self, client_id: str, error: str) -> None:
        self.error_occurred.emit(f"Client {client_id}: {error}")