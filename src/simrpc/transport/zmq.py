"""ZeroMQ transport.

Each payload travels as a single ZeroMQ message over a DEALER socket; ZeroMQ
does the framing, so no length prefix is added. The server side is expected
to be a ROUTER socket.

A DEALER socket connects lazily and reconnects silently, so the channel
watches its own socket monitor for disconnect events, and enables ZMTP
heartbeats so that a peer that stops answering is noticed too. Either way
a pending :func:`Channel.recv` raises :class:`simrpc.errors.ConnectionClosed`.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

import zmq
import zmq.utils.monitor

from ..errors import ConnectionClosed, ConnectionError
from .base import Channel as BaseChannel

logger = logging.getLogger(__name__)

zmq_context = zmq.Context()


class Channel(BaseChannel):
    """DEALER connection to a single server port."""

    # ZeroMQ sockets are not thread-safe, and cannot be closed out from
    # under a thread that is using them. recv() therefore polls in short
    # intervals, checking whether close() was called in the meantime.

    poll_interval = 100

    # Heartbeat settings are in milliseconds.

    heartbeat_interval = 1000
    heartbeat_timeout = 3000

    def __init__(self, address: str, port: int):
        super().__init__(address, port)
        self.socket: Optional[zmq.Socket] = None
        self.monitor: Optional[zmq.Socket] = None
        self._closed = False
        self._io_lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self.socket is not None and not self._closed

    def open(self) -> None:
        server = f"tcp://{self.address}:{self.port}"

        self.socket = zmq_context.socket(zmq.DEALER)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.socket.setsockopt(zmq.HEARTBEAT_IVL, self.heartbeat_interval)
        self.socket.setsockopt(zmq.HEARTBEAT_TIMEOUT, self.heartbeat_timeout)
        self.socket.setsockopt(zmq.HEARTBEAT_TTL, self.heartbeat_timeout)

        # The monitor has to exist before connect() or early events are lost.
        self.monitor = self.socket.get_monitor_socket(zmq.EVENT_DISCONNECTED)

        self.socket.connect(server)
        logger.debug("connected to %s", server)

    def close(self) -> None:
        if self._closed:
            return

        self._closed = True

        # If a recv() is in progress it will notice the flag and close the
        # socket itself on the way out.

        if self._io_lock.acquire(blocking=False):
            try:
                self._close_socket()
            finally:
                self._io_lock.release()

    def _close_socket(self) -> None:
        if self.socket is None or self.socket.closed:
            return

        if self.monitor is not None:
            self.socket.disable_monitor()
            self.monitor.close(linger=0)

        self.socket.close(linger=0)
        logger.debug("closed connection to %s:%d", self.address, self.port)

    def send(self, payload: bytes) -> None:
        with self._io_lock:
            if not self.is_open:
                raise ConnectionClosed(f"{self.address}:{self.port}: connection closed")

            try:
                self.socket.send(payload)
            except zmq.ZMQError as exc:
                raise ConnectionClosed(f"{self.address}:{self.port}: send failed: {exc}") from exc

    def recv(self, timeout: Optional[float] = None) -> bytes:
        if timeout is None:
            deadline = None
        else:
            deadline = time.monotonic() + timeout

        with self._io_lock:
            if self.socket is None:
                raise ConnectionClosed(f"{self.address}:{self.port}: not connected")

            poller = zmq.Poller()
            poller.register(self.socket, zmq.POLLIN)
            if self.monitor is not None:
                poller.register(self.monitor, zmq.POLLIN)

            try:
                while not self._closed:
                    for active, _flag in poller.poll(self.poll_interval):
                        if active == self.socket:
                            return self.socket.recv()

                        if active == self.monitor:
                            event = zmq.utils.monitor.recv_monitor_message(self.monitor)
                            if event['event'] == zmq.EVENT_DISCONNECTED:
                                self._closed = True
                                logger.warning("lost connection to %s:%d", self.address, self.port)

                    if deadline is not None and time.monotonic() > deadline:
                        raise ConnectionError(f"{self.address}:{self.port}: no response received in {timeout:.2f}s")
            except zmq.ZMQError as exc:
                raise ConnectionClosed(f"{self.address}:{self.port}: receive failed: {exc}") from exc

            self._close_socket()

        raise ConnectionClosed(f"{self.address}:{self.port}: connection closed")
