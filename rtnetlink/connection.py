"""An asynchronous connection to the kernel's routing netlink socket."""

from __future__ import annotations

import asyncio
import logging
import socket
from collections import deque
from typing import AsyncIterator, Deque

from .constants import NETLINK_ROUTE, NLM_F_ACK, NLM_F_MULTIPART
from .handle import Handle
from .messages import ErrorMessage, MessageType, NetlinkMessage

logger = logging.getLogger(__name__)

_RECV_SIZE = 1 << 16
_HEADER_SIZE = 16
_MAX_SEQUENCE = 0xFFFF_FFFF


def _split(data: bytes) -> list[NetlinkMessage]:
    """Decode every netlink message packed in one datagram."""
    messages = []
    offset = 0
    while len(data) - offset >= _HEADER_SIZE:
        try:
            message = NetlinkMessage.decode(data[offset:])
        except ValueError as exc:
            logger.warning("dropping malformed netlink data: %s", exc)
            break
        messages.append(message)
        offset += (message.header.length + 3) & ~3
    return messages


class Connection:
    """Sends requests on a datagram socket and routes replies to them.

    Replies are matched to requests by sequence number; everything else,
    such as multicast notifications, is kept for ``unsolicited``.
    """

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        sock.setblocking(False)
        self._next_sequence = 1
        self._pending: dict[int, Deque[NetlinkMessage]] = {}
        self._unsolicited: Deque[NetlinkMessage] = deque()
        self._lock = asyncio.Lock()
        self._closed = False

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def bind(self, groups: int) -> None:
        """Bind the socket to receive the given multicast groups."""
        self._sock.bind((0, groups))

    def request(self, message: NetlinkMessage) -> AsyncIterator[NetlinkMessage]:
        """Send a request and return an async iterator over its replies."""
        sequence = self._take_sequence()
        queue: Deque[NetlinkMessage] = deque()
        self._pending[sequence] = queue
        try:
            self._send(message, sequence)
        except OSError:
            del self._pending[sequence]
            raise
        ack = bool(message.header.flags & NLM_F_ACK)
        return self._replies(sequence, queue, ack)

    def notify(self, message: NetlinkMessage) -> None:
        """Send a message without waiting for replies."""
        self._send(message, self._take_sequence())

    async def unsolicited(self) -> AsyncIterator[NetlinkMessage]:
        """Yield messages that answer no request, until the connection closes."""
        while True:
            if self._unsolicited:
                yield self._unsolicited.popleft()
                continue
            try:
                await self._wait(self._unsolicited)
            except ConnectionError:
                return

    def close(self) -> None:
        """Close the socket; pending and later requests fail."""
        self._closed = True
        self._sock.close()

    def _take_sequence(self) -> int:
        sequence = self._next_sequence
        self._next_sequence = sequence % _MAX_SEQUENCE + 1
        return sequence

    def _send(self, message: NetlinkMessage, sequence: int) -> None:
        if self._closed:
            raise ConnectionError("connection closed")
        message.header.sequence_number = sequence
        message.header.port_number = 0
        self._sock.send(message.encode())

    def _dispatch(self, data: bytes) -> None:
        for message in _split(data):
            queue = self._pending.get(message.header.sequence_number)
            (self._unsolicited if queue is None else queue).append(message)

    async def _wait(self, queue: Deque[NetlinkMessage]) -> None:
        """Read from the socket until the queue holds a message."""
        while not queue:
            if self._closed:
                raise ConnectionError("connection closed")
            async with self._lock:
                if queue:
                    break
                loop = asyncio.get_running_loop()
                data = await loop.sock_recv(self._sock, _RECV_SIZE)
                self._dispatch(data)

    async def _replies(
        self, sequence: int, queue: Deque[NetlinkMessage], ack: bool
    ) -> AsyncIterator[NetlinkMessage]:
        try:
            while True:
                await self._wait(queue)
                message = queue.popleft()
                if message.header.message_type == MessageType.DONE:
                    return
                yield message
                if isinstance(message.payload, ErrorMessage):
                    return
                if not ack and not message.header.flags & NLM_F_MULTIPART:
                    return
        finally:
            self._pending.pop(sequence, None)


def new_connection() -> tuple[Connection, Handle]:
    """Open a routing netlink socket; return the connection and its handle."""
    family = getattr(socket, "AF_NETLINK", None)
    if family is None:
        raise OSError("netlink sockets are not available on this platform")
    sock = socket.socket(family, socket.SOCK_RAW, NETLINK_ROUTE)
    connection = Connection(sock)
    return connection, Handle(connection)