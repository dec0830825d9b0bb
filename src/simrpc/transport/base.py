"""Transport interface.

This is the (small) contract that transport implementations should follow.
A channel moves whole message payloads; how those payloads are delimited on
the wire is the channel's business. It lives outside :mod:`simrpc.protocol`
so the protocol remains transport-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..errors import ConnectionClosed, ConnectionError


class Channel(ABC):
    """Minimal contract for a wire-level channel.

    :func:`recv` blocks until a full payload arrives. :func:`close` may be
    called from any thread, and must cause a concurrently blocked
    :func:`recv` to raise :class:`simrpc.errors.ConnectionClosed`.
    """

    def __init__(self, address: str, port: int):
        self.address = address
        self.port = int(port)

    def __repr__(self) -> str:
        return f"{self.__class__.__module__}.{self.__class__.__name__}({self.address}:{self.port})"

    @abstractmethod
    def open(self) -> None:
        """Establish the underlying connection/socket."""

    @abstractmethod
    def close(self) -> None:
        """Tear down the underlying connection/socket. Idempotent."""

    @abstractmethod
    def send(self, payload: bytes) -> None:
        """Send one message payload."""

    @abstractmethod
    def recv(self, timeout: Optional[float] = None) -> bytes:
        """Receive the next message payload. With a *timeout* in seconds, raise
        :class:`simrpc.errors.ConnectionError` if nothing arrives in time.
        """

    @property
    def is_open(self) -> bool:
        """Whether the channel is currently connected."""
        return False


__all__ = ["Channel", "ConnectionClosed", "ConnectionError"]
