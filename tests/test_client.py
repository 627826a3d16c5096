import socket
import threading

import pytest

from tvhclient.client import HtspClient, HtspError, ServerAddress, login_digest
from tvhclient.messages import FieldType, HtspMessage, encode_message


def _read_msg(conn):
    header = b""
    while len(header) < 4:
        header += conn.recv(4 - len(header))
    size = int.from_bytes(header, "big")
    body = b""
    while len(body) < size:
        body += conn.recv(size - len(body))
    return HtspMessage(header + body)


@pytest.fixture
def pair():
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    port = listener.getsockname()[1]
    client = HtspClient([ServerAddress("localhost", port, ip="127.0.0.1")])
    client.connect(0)
    conn, _ = listener.accept()
    yield client, conn
    client.close()
    conn.close()
    listener.close()


def test_login_digest_known_vector():
    assert login_digest("ab", b"c").hex() == "a9993e364706816aba3e25717850c26c9cd0d89d"


def test_send_message_reaches_server(pair):
    client, conn = pair
    client.send_message(0, encode_message([(FieldType.STR, "method", "ping")]))
    assert _read_msg(conn).get_string("method") == "ping"


def test_recv_message_round_trip(pair):
    client, conn = pair
    conn.sendall(encode_message([(FieldType.S64, "seq", 42)]))
    msg = client.recv_message(0, 1000)
    assert msg.get_int("seq") == 42
    assert msg.server == 0


def test_recv_any_server(pair):
    client, conn = pair
    conn.sendall(encode_message([(FieldType.STR, "method", "eventAdd")]))
    msg = client.recv_message(None, 1000)
    assert msg.get_string("method") == "eventAdd"


def test_recv_timeout_returns_none(pair):
    client, _ = pair
    assert client.recv_message(0, 50) is None


def test_recv_closed_connection_raises(pair):
    client, conn = pair
    conn.close()
    with pytest.raises(HtspError):
        client.recv_message(0, 1000)


def _serve_login(conn, challenge, noaccess, seen):
    hello = _read_msg(conn)
    seen.append(hello)
    conn.sendall(encode_message([
        (FieldType.STR, "method", "hello"),
        (FieldType.BIN, "challenge", challenge),
    ]))
    auth = _read_msg(conn)
    seen.append(auth)
    conn.sendall(encode_message([(FieldType.S64, "noaccess", noaccess)]))


def test_login_with_credentials(pair):
    client, conn = pair
    challenge = bytes(range(32))
    seen = []
    worker = threading.Thread(target=_serve_login, args=(conn, challenge, 0, seen))
    worker.start()
    username = "user"
    password = "password"
    result = client.login(0, username, password)
    worker.join(5)
    assert result == challenge
    assert seen[0].get_string("method") == "hello"
    assert seen[0].get_int("htspversion") == 1
    assert seen[1].get_string("method") == "authenticate"
    assert seen[1].get_string("username") == "user"
    assert seen[1].get_bin("digest") == login_digest(password, challenge)


def test_login_refused(pair):
    client, conn = pair
    seen = []
    worker = threading.Thread(target=_serve_login, args=(conn, b"\x05" * 32, 1, seen))
    worker.start()
    password = "password"
    with pytest.raises(HtspError):
        client.login(0, "user", password)
    worker.join(5)
    assert len(seen) == 2


def test_login_without_credentials(pair):
    client, conn = pair
    seen = []

    def serve():
        seen.append(_read_msg(conn))
        conn.sendall(encode_message([(FieldType.STR, "method", "hello")]))

    worker = threading.Thread(target=serve)
    worker.start()
    assert client.login(0) == b""
    worker.join(5)
    assert seen[0].get_string("clientname") == "tvhclient"


def test_send_skip(pair):
    client, conn = pair
    client.subscription_id = 7
    client.send_skip(0, 5)
    msg = _read_msg(conn)
    assert msg.get_string("method") == "subscriptionSkip"
    assert msg.get_int64("time") == 5 * 1000000
    assert msg.get_int("subscriptionId") == 7


def test_send_skip_backwards(pair):
    client, conn = pair
    client.send_skip(0, -10)
    assert _read_msg(conn).get_int64("time") == -10 * 1000000


def test_connect_refused():
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    client = HtspClient([ServerAddress("localhost", port, ip="127.0.0.1")])
    with pytest.raises(HtspError):
        client.connect(0)


def test_connect_invalid_ip():
    client = HtspClient([ServerAddress("localhost", ip="not-an-address")])
    with pytest.raises(HtspError):
        client.connect(0)


def test_send_without_connection():
    client = HtspClient([ServerAddress("localhost")])
    with pytest.raises(HtspError):
        client.send_message(0, b"\x00\x00\x00\x00")


def test_close_clears_sockets(pair):
    client, _ = pair
    client.close()
    assert client.sockets == {}