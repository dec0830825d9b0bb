"""Transport layer implementations.

The backend is selected by name, ``tcp`` (the default) or ``zmq``; see
:func:`simrpc.config.load` for how the default is configured.
"""

from importlib import import_module

from .base import Channel

_BACKENDS = {
    "tcp": ".tcp",
    "zmq": ".zmq",
}


def backend(name="tcp"):
    """Return the transport module registered under *name*."""

    try:
        module = _BACKENDS[name]
    except KeyError:
        raise ValueError(f"unknown transport backend: {name!r}") from None

    return import_module(module, __name__)


def channel(address, port, name="tcp"):
    """Return an unopened :class:`Channel` for *address* and *port* using
    the *name* backend."""

    return backend(name).Channel(address, port)
