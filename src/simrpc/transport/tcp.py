"""Plain TCP transport.

Each payload travels as a varint length-prefixed frame, see
:mod:`simrpc.protocol.wire`.
"""

from __future__ import annotations

import logging
import socket
import threading
import time
from typing import Optional

from ..errors import ConnectionClosed, ConnectionError
from ..protocol.wire import FrameBuffer, pack_frame
from .base import Channel as BaseChannel

logger = logging.getLogger(__name__)

chunk_size = 65536


class Channel(BaseChannel):
    """Framed TCP connection to a single server port."""

    connect_timeout = 10.0

    def __init__(self, address: str, port: int):
        super().__init__(address, port)
        self.socket: Optional[socket.socket] = None
        self._frames = FrameBuffer()
        self._closed = False

        # The lock around the socket is necessary in a multithreaded
        # application; otherwise, if two different threads both invoke
        # sendall(), the frames can and will get mixed together.

        self._send_lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self.socket is not None and not self._closed

    def open(self) -> None:
        try:
            sock = socket.create_connection((self.address, self.port), timeout=self.connect_timeout)
        except OSError as exc:
            raise ConnectionError(f"cannot connect to {self.address}:{self.port}: {exc}") from exc

        # Once connected, reads block indefinitely; close() is the way out.
        sock.settimeout(None)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        self.socket = sock
        logger.debug("connected to %s:%d", self.address, self.port)

    def close(self) -> None:
        if self._closed:
            return

        self._closed = True
        sock = self.socket
        if sock is None:
            return

        # shutdown() wakes up any thread blocked in recv() on this socket;
        # close() alone does not reliably do so.

        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        sock.close()
        logger.debug("closed connection to %s:%d", self.address, self.port)

    def send(self, payload: bytes) -> None:
        if not self.is_open:
            raise ConnectionClosed(f"{self.address}:{self.port}: connection closed")

        frame = pack_frame(payload)

        with self._send_lock:
            try:
                self.socket.sendall(frame)
            except OSError as exc:
                if self._closed:
                    raise ConnectionClosed(f"{self.address}:{self.port}: connection closed") from exc
                raise ConnectionClosed(f"{self.address}:{self.port}: send failed: {exc}") from exc

    def recv(self, timeout: Optional[float] = None) -> bytes:
        if self.socket is None:
            raise ConnectionClosed(f"{self.address}:{self.port}: not connected")

        if timeout is None:
            deadline = None
        else:
            deadline = time.monotonic() + timeout

        while True:
            payload = self._frames.next_frame()
            if payload is not None:
                return payload

            if self._closed:
                raise ConnectionClosed(f"{self.address}:{self.port}: connection closed")

            try:
                if deadline is None:
                    chunk = self.socket.recv(chunk_size)
                else:
                    chunk = self._recv_before(deadline, timeout)
            except ConnectionError:
                raise
            except OSError as exc:
                raise ConnectionClosed(f"{self.address}:{self.port}: receive failed: {exc}") from exc

            if not chunk:
                raise ConnectionClosed(f"{self.address}:{self.port}: connection closed by peer")

            self._frames.feed(chunk)

    def _recv_before(self, deadline: float, timeout: float) -> bytes:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise ConnectionError(f"{self.address}:{self.port}: no response received in {timeout:.2f}s")

        self.socket.settimeout(remaining)
        try:
            return self.socket.recv(chunk_size)
        except socket.timeout as exc:
            raise ConnectionError(f"{self.address}:{self.port}: no response received in {timeout:.2f}s") from exc
        finally:
            self.socket.settimeout(None)
