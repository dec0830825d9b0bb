"""
simrpc Protocol Layer
=====================

This package defines how values and messages are represented on the wire.
It MUST NOT depend on any transport implementation.

---------------------------------------------------------------------

Layer Architecture Overview
---------------------------

Client code / generated service wrappers
    │
    ▼
Call Builder (builder.py)
    build_call(service, procedure, args)
    Immutable ProcedureCall descriptors

    │
    ▼
Message Model (message.py)
    ConnectionRequest / ConnectionResponse
    Request / Response / ProcedureResult / Error
    StreamUpdate / StreamResult / StreamInfo

    │
    ▼
Value Codec (codec.py, types.py)
    encode(value, type) / decode(data, type)
    One canonical encoding per type

    │
    ▼
Wire Primitives (wire.py)
    Varints, length prefixes, frames

Protocol Vocabulary (fields.py)
    Connection types, status codes, core procedure names

---------------------------------------------------------------------
"""

from . import fields
from . import wire
from . import types
from . import codec
from . import message
from . import builder

from .builder import build_call
from .codec import decode, encode


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
