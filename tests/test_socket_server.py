import json
import socket
import time

import pytest

from plantservant.framing import PacketDecoder, encode_message
from plantservant.socket_server import ClientConnection, SocketServer


@pytest.fixture
def pair():
    left, right = socket.socketpair()
    yield left, right
    for s in (left, right):
        try:
            s.close()
        except OSError:
            pass


def _collect(signal):
    calls = []
    signal.connect(lambda *args: calls.append(args))
    return calls


def _read_messages(sock, count, limit=5.0):
    decoder = PacketDecoder()
    messages = []
    sock.settimeout(limit)
    while len(messages) < count:
        chunk = sock.recv(65536)
        assert chunk, "peer closed before all messages arrived"
        messages.extend(json.loads(p) for p in decoder.feed(chunk))
    return messages


def _poll_until(server, condition, limit=5.0):
    deadline = time.monotonic() + limit
    while not condition():
        assert time.monotonic() < deadline, "condition not met in time"
        server.poll(0.05)


def test_send_json_writes_framed_packet(pair):
    left, right = pair
    conn = ClientConnection(left)
    message = {"header": {"messageType": "response"}, "body": {"status": "success"}}
    assert conn.send_json(message) is True
    assert _read_messages(right, 1) == [message]


def test_send_json_bytes_match_encoding(pair):
    left, right = pair
    conn = ClientConnection(left)
    message = {"b": 1, "a": [1, 2]}
    conn.send_json(message)
    expected = encode_message(message)
    right.settimeout(5)
    got = b""
    while len(got) < len(expected):
        got += right.recv(65536)
    assert got == expected


def test_receive_emits_complete_messages_only(pair):
    left, _ = pair
    conn = ClientConnection(left, client_id="c1")
    received = _collect(conn.json_data_received)
    first = {"x": 1}
    second = encode_message({"y": 2})
    assert conn.receive(encode_message(first) + second[:5]) == 1
    assert received == [("c1", first)]
    assert conn.receive(second[5:]) == 1
    assert received[-1] == ("c1", {"y": 2})


def test_receive_reports_parse_error(pair):
    left, _ = pair
    conn = ClientConnection(left, client_id="c1")
    errors = _collect(conn.error_occurred)
    assert conn.receive(b"\x00\x00\x00\x03{{{") == 0
    assert len(errors) == 1
    assert errors[0][0] == "c1"
    assert errors[0][1].startswith("JSON parse error")


def test_send_json_string_rejects_invalid_text(pair):
    left, _ = pair
    conn = ClientConnection(left)
    errors = _collect(conn.error_occurred)
    assert conn.send_json_string("not json") is False
    assert errors[0][1].startswith("Invalid JSON")


def test_send_json_string_sends_parsed_value(pair):
    left, right = pair
    conn = ClientConnection(left)
    assert conn.send_json_string('{"k": "v"}') is True
    assert _read_messages(right, 1) == [{"k": "v"}]


def test_close_announces_logout_and_disconnect(pair):
    left, _ = pair
    conn = ClientConnection(left, client_id="c1")
    conn.user_id = "7"
    logged_out = _collect(conn.user_logged_out)
    disconnected = _collect(conn.client_disconnected)
    conn.close()
    conn.close()
    assert not conn.is_connected()
    assert logged_out == [("7",)]
    assert disconnected == [("c1",)]


def test_send_after_close_fails(pair):
    left, _ = pair
    conn = ClientConnection(left, client_id="c1")
    errors = _collect(conn.error_occurred)
    conn.close()
    assert conn.send_json({"a": 1}) is False
    assert errors == [("c1", "Client not connected")]


def test_client_id_has_eight_characters(pair):
    left, _ = pair
    assert len(ClientConnection(left).client_id) == 8


def test_login_mapping_and_takeover():
    server = SocketServer()
    a1, b1 = socket.socketpair()
    a2, b2 = socket.socketpair()
    try:
        first = ClientConnection(a1, client_id="c1")
        second = ClientConnection(a2, client_id="c2")
        server.add_client(first)
        server.add_client(second)
        assert server.connected_clients() == ["c1", "c2"]

        server.set_user_logged_in("c1", "u1")
        assert server.get_client_by_user_id("u1") is first
        assert first.is_logged_in()

        server.set_user_logged_in("c2", "u1")
        assert server.get_client_by_user_id("u1") is second
        assert first.user_id == ""
        assert server.logged_in_users() == ["u1"]

        server.set_user_logged_out("c2")
        assert server.logged_in_user_count() == 0
        assert second.user_id == ""
    finally:
        for s in (a1, b1, a2, b2):
            s.close()


def test_login_on_unknown_client_is_ignored():
    server = SocketServer()
    events = _collect(server.user_logged_in)
    server.set_user_logged_in("ghost", "u1")
    assert server.logged_in_user_count() == 0
    assert events == []


def test_remove_client_clears_login(pair):
    left, right = pair
    server = SocketServer()
    disconnected = _collect(server.client_disconnected)
    conn = ClientConnection(left, client_id="c1")
    server.add_client(conn)
    server.set_user_logged_in("c1", "u1")
    server.remove_client("c1")
    assert server.client_count() == 0
    assert server.get_client_by_user_id("u1") is None
    assert disconnected == [("c1",)]
    right.settimeout(5)
    assert right.recv(10) == b""


def test_send_to_unknown_targets():
    server = SocketServer()
    errors = _collect(server.error_occurred)
    assert server.send_json_to_client("nope", {"a": 1}) is False
    assert errors == [("Client not found: nope",)]
    assert server.send_json_to_user("u9", {"a": 1}) is False
    assert len(errors) == 1
    assert server.send_json_to_user("u9", '{"a": 1}') is False
    assert len(errors) == 2


def test_broadcast_to_users_reaches_only_listed():
    server = SocketServer()
    a1, b1 = socket.socketpair()
    a2, b2 = socket.socketpair()
    try:
        server.add_client(ClientConnection(a1, client_id="c1"))
        server.add_client(ClientConnection(a2, client_id="c2"))
        server.set_user_logged_in("c1", "u1")
        server.set_user_logged_in("c2", "u2")
        message = {"body": {"eventType": "chat_message"}}
        server.broadcast_to_users(["u2", "missing"], message)
        assert _read_messages(b2, 1) == [message]
        b1.setblocking(False)
        with pytest.raises(BlockingIOError):
            b1.recv(10)
    finally:
        for s in (a1, b1, a2, b2):
            s.close()


def test_not_running_info():
    server = SocketServer()
    assert not server.is_listening()
    assert server.server_info() == "JSON server is not running"
    assert server.server_port() == 0
    assert server.poll(0) == 0


def test_network_round_trip():
    with SocketServer() as server:
        received = _collect(server.json_data_received)
        stopped = _collect(server.server_stopped)
        assert server.start_server("127.0.0.1", 0) is True
        port = server.server_port()
        assert port > 0
        assert str(port) in server.server_info()

        errors = _collect(server.error_occurred)
        assert server.start_server("127.0.0.1", 0) is False
        assert errors == [("JSON server is already listening",)]

        client = socket.create_connection(("127.0.0.1", port), timeout=5)
        try:
            _poll_until(server, lambda: server.client_count() == 1)
            request = {"header": {"messageType": "command"}, "body": {"action": "list"}}
            client.sendall(encode_message(request))
            _poll_until(server, lambda: len(received) == 1)
            client_id, message = received[0]
            assert message == request
            assert server.connected_clients() == [client_id]

            reply = {"body": {"status": "success"}}
            assert server.send_json_to_client(client_id, reply) is True
            assert _read_messages(client, 1) == [reply]
        finally:
            client.close()

        _poll_until(server, lambda: server.client_count() == 0)
        server.stop_server()
        assert not server.is_listening()
        assert stopped == [()]