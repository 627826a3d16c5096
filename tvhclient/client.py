"""TCP client for one or more HTSP servers."""

from __future__ import annotations

import hashlib
import logging
import select
import socket
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from .messages import FieldType, HtspMessage, encode_message

log = logging.getLogger(__name__)

DEFAULT_PORT = 9982
CLIENT_NAME = "tvhclient"


class HtspError(Exception):
    """Raised when talking to an HTSP server fails."""


@dataclass
class ServerAddress:
    """Where an HTSP server is found."""

    host: str
    port: int = DEFAULT_PORT
    ip: Optional[str] = None


def login_digest(password: str, challenge: bytes) -> bytes:
    """Return the SHA-1 digest of the password followed by the server challenge."""
    return hashlib.sha1(password.encode("utf-8") + bytes(challenge)).digest()


def _recv_exact(sock: socket.socket, count: int) -> bytes:
    chunks = bytearray()
    while len(chunks) < count:
        try:
            chunk = sock.recv(count - len(chunks))
        except OSError as exc:
            raise HtspError(f"error in recv: {exc}") from exc
        if not chunk:
            raise HtspError("connection closed by server")
        chunks += chunk
    return bytes(chunks)


class HtspClient:
    """Connections to a set of HTSP servers, addressed by their position."""

    def __init__(self, servers: List[ServerAddress]) -> None:
        self.servers = list(servers)
        self.sockets: Dict[int, socket.socket] = {}
        self.subscription_id = 0
        self.subscription_server = -1
        self.sync_completed = False

    def __enter__(self) -> "HtspClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def connect(self, server: int) -> None:
        """Open the TCP connection to the given server."""
        address = self.servers[server]
        if address.ip is None:
            try:
                address.ip = socket.gethostbyname(address.host)
            except OSError as exc:
                raise HtspError(f"can't get IP of {address.host}: {exc}") from exc
        try:
            socket.inet_pton(socket.AF_INET, address.ip)
        except OSError as exc:
            raise HtspError(f"{address.ip} is not a valid IP address") from exc

        log.info("Connecting to server %d: %s (%s) port %d...",
                 server, address.host, address.ip, address.port)
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)
        try:
            sock.connect((address.ip, address.port))
        except OSError as exc:
            sock.close()
            raise HtspError(f"could not connect: {exc}") from exc
        old = self.sockets.pop(server, None)
        if old is not None:
            old.close()
        self.sockets[server] = sock

    def _socket(self, server: int) -> socket.socket:
        try:
            return self.sockets[server]
        except KeyError:
            raise HtspError(f"server {server} is not connected") from None

    def send_message(self, server: int, message: Union[HtspMessage, bytes]) -> None:
        """Send an encoded message to a server."""
        data = message.data if isinstance(message, HtspMessage) else bytes(message)
        try:
            self._socket(server).sendall(data)
        except OSError as exc:
            raise HtspError(f"can't send message: {exc}") from exc

    def recv_message(self, server: Optional[int] = None, timeout: int = 0) -> Optional[HtspMessage]:
        """Receive one message.

        With server None, read from whichever connected server is ready first.
        A non-zero timeout (in milliseconds) returns None when nothing arrives.
        """
        if server is not None and server >= 0:
            candidates = [(server, self._socket(server))]
        else:
            candidates = sorted(self.sockets.items())
            if not candidates:
                raise HtspError("no server is connected")

        if timeout or len(candidates) > 1:
            wait = timeout / 1000 if timeout else None
            ready, _, _ = select.select([s for _, s in candidates], [], [], wait)
            if not ready:
                return None
            candidates = [(n, s) for n, s in candidates if s in ready]

        number, sock = candidates[0]
        header = _recv_exact(sock, 4)
        body = _recv_exact(sock, int.from_bytes(header, "big"))
        return HtspMessage(header + body, number)

    def _request(self, server: int, fields) -> HtspMessage:
        self.send_message(server, encode_message(fields))
        reply = self.recv_message(server, 0)
        if reply is None:
            raise HtspError("no reply from server")
        return reply

    def login(self, server: int, username: Optional[str] = None,
              password: Optional[str] = None) -> bytes:
        """Say hello and, given credentials, authenticate; return the challenge."""
        reply = self._request(server, [
            (FieldType.STR, "method", "hello"),
            (FieldType.STR, "clientname", CLIENT_NAME),
            (FieldType.S64, "htspversion", 1),
            (FieldType.S64, "seq", 1),
        ])
        challenge = reply.get_bin("challenge") or b""

        if username and password:
            log.info("Authenticating as user %s", username)
            reply = self._request(server, [
                (FieldType.STR, "method", "authenticate"),
                (FieldType.STR, "username", username),
                (FieldType.BIN, "digest", login_digest(password, challenge)),
            ])
            if reply.get_int("noaccess") == 1:
                raise HtspError("login failure - no access with username and password")
        return challenge

    def send_skip(self, server: int, seconds: int) -> None:
        """Ask the server to skip the current subscription by some seconds."""
        self.send_message(server, encode_message([
            (FieldType.STR, "method", "subscriptionSkip"),
            (FieldType.S64, "time", seconds * 1000000),
            (FieldType.S64, "subscriptionId", self.subscription_id),
        ]))
        log.debug("Sent subscriptionSkip(%d)", seconds)

    def close(self) -> None:
        """Close every open connection."""
        for sock in self.sockets.values():
            sock.close()
        self.sockets.clear()