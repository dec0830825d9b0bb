""" Low-level byte handling shared by the value codec and the transports:
    base-128 varints, length-prefixed blobs, and framing of whole messages.

    A frame on the wire is a varint holding the payload length, followed by
    the payload itself::

        [varint length][payload...]
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from ..errors import DecodeError


# A 64-bit value never needs more than ten 7-bit groups.

MAX_VARINT_BYTES = 10
MAX_VARINT = (1 << 64) - 1


def encode_varint(value: int) -> bytes:
    """ Encode a non-negative integer, least significant group first.
    """

    if value < 0:
        raise ValueError('varints must be non-negative: ' + str(value))

    if value > MAX_VARINT:
        raise ValueError('value too large for a varint: ' + str(value))

    encoded = bytearray()

    while True:
        bits = value & 0x7f
        value >>= 7

        if value:
            encoded.append(bits | 0x80)
        else:
            encoded.append(bits)
            break

    return bytes(encoded)


def decode_varint(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """ Decode a varint starting at *offset*. Returns the value and the
        offset of the first byte following it.
    """

    result = 0
    shift = 0
    position = offset
    end = len(data)

    while True:
        if position >= end:
            raise DecodeError('truncated varint at offset %d' % (offset))

        if position - offset >= MAX_VARINT_BYTES:
            raise DecodeError('varint too long at offset %d' % (offset))

        byte = data[position]
        position += 1

        result |= (byte & 0x7f) << shift
        shift += 7

        if byte & 0x80 == 0:
            break

    if result > MAX_VARINT:
        raise DecodeError('varint overflows 64 bits at offset %d' % (offset))

    return result, position


def zigzag(value: int) -> int:
    """ Map a signed integer onto an unsigned one so that small magnitudes
        produce short varints: 0, -1, 1, -2 become 0, 1, 2, 3.
    """

    if value >= 0:
        return value << 1
    return ((-value) << 1) - 1


def unzigzag(value: int) -> int:

    if value & 1:
        return -((value + 1) >> 1)
    return value >> 1


def prefixed(blob: bytes) -> bytes:
    """ Return *blob* preceded by its length as a varint.
    """

    return encode_varint(len(blob)) + blob


def read_prefixed(data: bytes, offset: int = 0) -> Tuple[bytes, int]:
    """ Read a length-prefixed blob starting at *offset*. Returns the blob
        and the offset of the first byte following it.
    """

    length, start = decode_varint(data, offset)
    stop = start + length

    if stop > len(data):
        raise DecodeError("length %d at offset %d runs past the end of %d bytes" % (length, offset, len(data)))

    return bytes(data[start:stop]), stop


def split_prefixed(data: bytes) -> List[bytes]:
    """ Split a buffer holding back-to-back length-prefixed blobs.
    """

    chunks = list()
    offset = 0
    end = len(data)

    while offset < end:
        chunk, offset = read_prefixed(data, offset)
        chunks.append(chunk)

    return chunks


def pack_frame(payload: bytes) -> bytes:
    """ Serialize one message payload into a frame.
    """

    return prefixed(payload)


class FrameBuffer:
    """ Accumulates bytes received from a stream-oriented socket and splits
        them back into frames. The socket may deliver a frame in pieces, or
        several frames at once; :func:`next_frame` returns None until a full
        frame is available.
    """

    def __init__(self):
        self._buffer = bytearray()


    def __len__(self):
        return len(self._buffer)


    def feed(self, data: bytes) -> None:
        self._buffer.extend(data)


    def next_frame(self) -> Optional[bytes]:

        buffer = self._buffer

        try:
            length, start = decode_varint(buffer)
        except DecodeError:
            # A truncated varint just means more bytes are needed; anything
            # longer than the maximum varint length is corrupt.

            if len(buffer) >= MAX_VARINT_BYTES:
                raise
            return None

        stop = start + length
        if stop > len(buffer):
            return None

        payload = bytes(buffer[start:stop])
        del buffer[:stop]
        return payload


# end of class FrameBuffer


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
