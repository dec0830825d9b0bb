""" Python client for driving a simulation server over RPC. This includes
    the value codec, synchronous procedure invocation with typed exceptions,
    and streams of server-pushed values.
"""

# Utility components.

from . import json
from . import errors
from . import remote

# Submodules used by multiple other components.

from . import protocol
from . import transport
from . import config
home = config.directory

# Primary public-facing interfaces.

from .errors import (
    ClientError,
    ConnectionClosed,
    ConnectionError,
    DecodeError,
    ExceptionRegistry,
    RPCError,
    StreamError,
)
from .protocol import build_call, decode, encode, types
from .remote import RemoteObject
from .invoker import Result
from .stream import Stream
from .event import Event
from .client import Client, State, connect

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
