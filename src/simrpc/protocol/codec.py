""" The value codec: :func:`encode` turns Python values into wire bytes,
    :func:`decode` turns wire bytes back into Python values. Decoding needs
    an explicit type descriptor from :mod:`simrpc.protocol.types`; encoding
    can infer one from the value when none is given.
"""

import enum

from ..remote import RemoteObject
from . import types


def decode(data, type):
    """ Decode *data* according to the *type* descriptor. Decoding is pure;
        malformed or truncated input raises
        :class:`simrpc.errors.DecodeError`.
    """

    return type.decode(bytes(data))


def encode(value, type=None):
    """ Encode *value* as bytes. If *type* is not specified it is inferred
        via :func:`infer`.
    """

    if type is None:
        type = infer(value)

    return type.encode(value)


def infer(value):
    """ Return the type descriptor that would be used to encode *value* if
        no explicit type were requested. Collections are inferred from their
        first element; an empty collection is typed as a collection of
        :data:`types.Bytes`, which encodes identically.
    """

    if value is None:
        return types.Class(None)

    # bool and IntEnum are both int subclasses; check them first.

    if isinstance(value, bool):
        return types.Bool

    if isinstance(value, enum.Enum):
        return types.Enumeration(value.__class__)

    if isinstance(value, int):
        if value > types.SInt64.maximum:
            return types.UInt64
        return types.SInt64

    if isinstance(value, float):
        return types.Double

    if isinstance(value, str):
        return types.String

    if isinstance(value, (bytes, bytearray, memoryview)):
        return types.Bytes

    if isinstance(value, RemoteObject):
        return types.Class(value.type_name)

    if isinstance(value, tuple):
        return types.Tuple(*[infer(element) for element in value])

    if isinstance(value, list):
        return types.List(_first(value))

    if isinstance(value, (set, frozenset)):
        return types.Set(_first(value))

    if isinstance(value, dict):
        if value:
            key, element = next(iter(value.items()))
            return types.Dictionary(infer(key), infer(element))
        return types.Dictionary(types.Bytes, types.Bytes)

    try:
        value.fields
    except AttributeError:
        pass
    else:
        return types.MessageType(value.__class__)

    raise TypeError('cannot infer a wire type for ' + type(value).__name__)


def _first(collection):

    for element in collection:
        return infer(element)

    return types.Bytes


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
