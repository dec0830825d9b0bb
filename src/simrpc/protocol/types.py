""" Type descriptors for the value codec. Each descriptor knows how to turn
    a Python value into its canonical wire encoding, and back again. The
    scalar descriptors are module-level instances; the parameterized ones
    are classes to be instantiated with their element types::

        types.SInt32
        types.List(types.String)
        types.Dictionary(types.String, types.Tuple(types.Double, types.Bool))
        types.Class('SpaceCenter.Vessel')

    Every :func:`decode` consumes the entire buffer it is handed; extra or
    missing bytes raise :class:`simrpc.errors.DecodeError`.
"""

import enum
import numbers
import operator
import struct

from ..errors import DecodeError
from ..remote import RemoteObject
from . import wire


class Type:
    """ Base class for all type descriptors.
    """

    name = 'type'

    def encode(self, value):
        raise NotImplementedError('encode() is not implemented for ' + self.name)


    def decode(self, data):
        raise NotImplementedError('decode() is not implemented for ' + self.name)


    def __repr__(self):
        return 'types.' + self.name


# end of class Type



def _whole_varint(data, name):
    """ Decode a buffer that must hold exactly one varint.
    """

    value, offset = wire.decode_varint(data)

    if offset != len(data):
        raise DecodeError("%d trailing bytes after %s" % (len(data) - offset, name))

    return value



class _Integer(Type):

    def __init__(self, name, bits, signed):

        self.name = name
        self.bits = bits
        self.signed = signed

        if signed == True:
            self.minimum = -(1 << (bits - 1))
            self.maximum = (1 << (bits - 1)) - 1
        else:
            self.minimum = 0
            self.maximum = (1 << bits) - 1


    def encode(self, value):

        try:
            value = operator.index(value)
        except TypeError:
            raise TypeError("%s expects an integer, not %s" % (self.name, type(value).__name__))

        if value < self.minimum or value > self.maximum:
            raise ValueError("%d is out of range for %s" % (value, self.name))

        if self.signed == True:
            value = wire.zigzag(value)

        return wire.encode_varint(value)


    def decode(self, data):

        value = _whole_varint(data, self.name)

        if self.signed == True:
            value = wire.unzigzag(value)

        if value < self.minimum or value > self.maximum:
            raise DecodeError("%d is out of range for %s" % (value, self.name))

        return value


# end of class _Integer


SInt32 = _Integer('SInt32', 32, True)
SInt64 = _Integer('SInt64', 64, True)
UInt32 = _Integer('UInt32', 32, False)
UInt64 = _Integer('UInt64', 64, False)



class _Bool(Type):

    name = 'Bool'

    def encode(self, value):

        if isinstance(value, bool):
            pass
        else:
            raise TypeError('Bool expects bool, not ' + type(value).__name__)

        if value == True:
            return b'\x01'
        else:
            return b'\x00'


    def decode(self, data):

        value = _whole_varint(data, self.name)

        if value == 1:
            return True
        if value == 0:
            return False

        raise DecodeError('invalid boolean value: ' + str(value))


# end of class _Bool


Bool = _Bool()



class _Floating(Type):

    def __init__(self, name, format):
        self.name = name
        self.format = format
        self.size = struct.calcsize(format)


    def encode(self, value):

        if isinstance(value, numbers.Real) and not isinstance(value, bool):
            pass
        else:
            raise TypeError("%s expects a real number, not %s" % (self.name, type(value).__name__))

        try:
            return struct.pack(self.format, value)
        except (struct.error, OverflowError) as e:
            raise ValueError("cannot encode %r as %s: %s" % (value, self.name, e))


    def decode(self, data):

        if len(data) != self.size:
            raise DecodeError("%s expects %d bytes, received %d" % (self.name, self.size, len(data)))

        return struct.unpack(self.format, data)[0]


# end of class _Floating


Float = _Floating('Float', '<f')
Double = _Floating('Double', '<d')



class _String(Type):

    name = 'String'

    def encode(self, value):

        if isinstance(value, str):
            pass
        else:
            raise TypeError('String expects str, not ' + type(value).__name__)

        return wire.prefixed(value.encode('utf-8'))


    def decode(self, data):

        raw, offset = wire.read_prefixed(data)

        if offset != len(data):
            raise DecodeError("%d trailing bytes after String" % (len(data) - offset))

        try:
            return raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecodeError('String is not valid UTF-8: ' + str(e))


# end of class _String


String = _String()



class _Bytes(Type):

    name = 'Bytes'

    def encode(self, value):

        if isinstance(value, (bytes, bytearray, memoryview)):
            pass
        else:
            raise TypeError('Bytes expects bytes, not ' + type(value).__name__)

        return wire.prefixed(bytes(value))


    def decode(self, data):

        raw, offset = wire.read_prefixed(data)

        if offset != len(data):
            raise DecodeError("%d trailing bytes after Bytes" % (len(data) - offset))

        return raw


# end of class _Bytes


Bytes = _Bytes()



class List(Type):
    """ A homogeneous list. Each element is encoded independently and
        prefixed with its length.
    """

    container = list

    def __init__(self, element):
        self.element = element


    @property
    def name(self):
        return "%s(%r)" % (self.__class__.__name__, self.element)


    def encode(self, value):

        encoded = list()
        for element in value:
            encoded.append(wire.prefixed(self.element.encode(element)))

        return b''.join(encoded)


    def decode(self, data):

        elements = list()
        for chunk in wire.split_prefixed(data):
            elements.append(self.element.decode(chunk))

        return self.container(elements)


# end of class List



class Set(List):
    """ Identical to :class:`List` on the wire; decodes to a Python set.
    """

    container = set


# end of class Set



class Tuple(Type):
    """ A fixed-length sequence of possibly heterogeneous elements.
    """

    def __init__(self, *elements):
        self.elements = tuple(elements)


    @property
    def name(self):
        return 'Tuple' + repr(self.elements)


    def encode(self, value):

        value = tuple(value)

        if len(value) != len(self.elements):
            raise ValueError("%s expects %d elements, received %d" % (self.name, len(self.elements), len(value)))

        encoded = list()
        for element_type, element in zip(self.elements, value):
            encoded.append(wire.prefixed(element_type.encode(element)))

        return b''.join(encoded)


    def decode(self, data):

        chunks = wire.split_prefixed(data)

        if len(chunks) != len(self.elements):
            raise DecodeError("%s expects %d elements, received %d" % (self.name, len(self.elements), len(chunks)))

        values = list()
        for element_type, chunk in zip(self.elements, chunks):
            values.append(element_type.decode(chunk))

        return tuple(values)


# end of class Tuple



class Dictionary(Type):
    """ A mapping, encoded as repeated length-prefixed key/value pairs.
    """

    def __init__(self, key, value):
        self.key = key
        self.value = value


    @property
    def name(self):
        return "Dictionary(%r, %r)" % (self.key, self.value)


    def encode(self, value):

        encoded = list()
        for key, element in value.items():
            encoded.append(wire.prefixed(self.key.encode(key)))
            encoded.append(wire.prefixed(self.value.encode(element)))

        return b''.join(encoded)


    def decode(self, data):

        chunks = wire.split_prefixed(data)

        if len(chunks) % 2 != 0:
            raise DecodeError('Dictionary has a key without a value')

        result = dict()
        for index in range(0, len(chunks), 2):
            key = self.key.decode(chunks[index])
            result[key] = self.value.decode(chunks[index + 1])

        return result


# end of class Dictionary



class Enumeration(Type):
    """ An enumeration, encoded as its underlying signed integer. Decoding
        does not validate the range: a value unknown to *enumeration* is
        returned as a plain int, so that a newer server adding values does
        not break older clients.
    """

    def __init__(self, enumeration):
        self.enumeration = enumeration


    @property
    def name(self):
        return "Enumeration(%s)" % (self.enumeration.__name__)


    def encode(self, value):

        if isinstance(value, enum.Enum):
            value = value.value

        return SInt32.encode(value)


    def decode(self, data):

        raw = SInt32.decode(data)

        try:
            return self.enumeration(raw)
        except ValueError:
            return raw


# end of class Enumeration



class Class(Type):
    """ A reference to a server-side object, encoded as its numeric id. None
        encodes as id zero, and id zero decodes as None. The *factory* builds
        the client-side value from the type name and id; wrappers can supply
        their own :class:`simrpc.remote.RemoteObject` subclass.
    """

    def __init__(self, type_name, factory=RemoteObject):
        self.type_name = type_name
        self.factory = factory


    @property
    def name(self):
        return "Class(%r)" % (self.type_name)


    def encode(self, value):

        if value is None:
            return UInt64.encode(0)

        try:
            id = value.id
        except AttributeError:
            raise TypeError('Class expects a remote object, not ' + type(value).__name__)

        return UInt64.encode(id)


    def decode(self, data):

        id = UInt64.decode(data)

        if id == 0:
            return None

        return self.factory(self.type_name, id)


# end of class Class



class Optional(Type):
    """ A value that may be absent: a varint flag, then the length-prefixed
        element if the flag is set.
    """

    def __init__(self, element):
        self.element = element


    @property
    def name(self):
        return "Optional(%r)" % (self.element)


    def encode(self, value):

        if value is None:
            return wire.encode_varint(0)

        return wire.encode_varint(1) + wire.prefixed(self.element.encode(value))


    def decode(self, data):

        flag, offset = wire.decode_varint(data)

        if flag == 0:
            if offset != len(data):
                raise DecodeError('absent Optional carries trailing bytes')
            return None

        if flag != 1:
            raise DecodeError('invalid Optional flag: ' + str(flag))

        raw, offset = wire.read_prefixed(data, offset)

        if offset != len(data):
            raise DecodeError("%d trailing bytes after Optional" % (len(data) - offset))

        return self.element.decode(raw)


# end of class Optional



class MessageType(Type):
    """ A structured wire message, encoded as a :class:`Tuple` of its fields.
        The *message* class must define a ``fields`` sequence of
        (attribute name, type descriptor) pairs, and accept those attributes
        as keyword arguments.
    """

    def __init__(self, message):
        self.message = message
        self._tuple = None


    @property
    def name(self):
        return "MessageType(%s)" % (self.message.__name__)


    def _fields(self):

        # Resolved lazily, so that message classes can refer to each other
        # regardless of definition order.

        if self._tuple is None:
            types = [field_type for field_name, field_type in self.message.fields]
            self._tuple = Tuple(*types)

        return self._tuple


    def encode(self, value):

        values = [getattr(value, field_name) for field_name, field_type in self.message.fields]
        return self._fields().encode(values)


    def decode(self, data):

        values = self._fields().decode(data)
        names = [field_name for field_name, field_type in self.message.fields]
        return self.message(**dict(zip(names, values)))


# end of class MessageType


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
