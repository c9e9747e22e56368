"""
Minimal TL serialization used by the session state.

The full schema-driven encoder/decoder lives outside this package; the state
only needs a byte sink, a little-endian reader, `gzip_packed` and
`invokeAfterMsg`. Other objects are surfaced as `TLObject` with their raw
bytes so a schema layer can take over.
"""

import gzip
import struct
import zlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from .types import GZIP_MIN_SIZE, GZIP_PACKED_ID, INVOKE_AFTER_MSG_ID, InvalidBufferError


class BinaryWriter:
    """Append-only byte sink."""

    def __init__(self, initial: bytes = b"") -> None:
        self._buffer = bytearray(initial)

    def write(self, data: bytes) -> None:
        """Append data to the sink."""
        self._buffer += data

    def get_value(self) -> bytes:
        """Everything written so far."""
        return bytes(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)


class BinaryReader:
    """Little-endian reader over a byte buffer."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._position = 0

    def read(self, length: int = -1) -> bytes:
        """
        Read `length` bytes, or everything left when length is negative.

        Raises:
            InvalidBufferError: If fewer than `length` bytes remain
        """
        if length < 0:
            length = len(self._data) - self._position

        end = self._position + length
        if end > len(self._data):
            raise InvalidBufferError(self._data)

        result = self._data[self._position : end]
        self._position = end
        return result

    def read_int(self, signed: bool = True) -> int:
        """Read a 32-bit integer."""
        return int.from_bytes(self.read(4), byteorder="little", signed=signed)

    def read_long(self, signed: bool = True) -> int:
        """Read a 64-bit integer."""
        return int.from_bytes(self.read(8), byteorder="little", signed=signed)

    def read_tl_bytes(self) -> bytes:
        """Read a length-prefixed TL `bytes` value including its padding."""
        first = self.read(1)[0]
        if first == 254:
            length = int.from_bytes(self.read(3), byteorder="little")
            padding = length % 4
        else:
            length = first
            padding = (length + 1) % 4

        data = self.read(length)
        if padding > 0:
            self.read(4 - padding)
        return data

    def tell_position(self) -> int:
        """Current read offset."""
        return self._position

    def remaining(self) -> int:
        """Number of unread bytes."""
        return len(self._data) - self._position


def serialize_bytes(data: bytes) -> bytes:
    """Encode data as a TL `bytes` value (length prefix, 4-byte aligned)."""
    if len(data) < 254:
        padding = (len(data) + 1) % 4
        if padding != 0:
            padding = 4 - padding
        header = bytes([len(data)])
    else:
        padding = len(data) % 4
        if padding != 0:
            padding = 4 - padding
        header = bytes([254]) + len(data).to_bytes(3, byteorder="little")

    return header + data + bytes(padding)


def deserialize_bytes(data: bytes) -> bytes:
    """Decode a TL `bytes` value."""
    return BinaryReader(data).read_tl_bytes()


def long_to_bytes(value: int) -> bytes:
    """8-byte little-endian two's-complement encoding of a 64-bit value."""
    return (value & 0xFFFFFFFFFFFFFFFF).to_bytes(8, byteorder="little")


@dataclass
class TLObject:
    """An object this layer does not interpret: constructor id plus raw body."""
    constructor_id: int
    data: bytes

    def to_bytes(self) -> bytes:
        return struct.pack("<I", self.constructor_id) + self.data


@dataclass
class GzipPacked:
    """`gzip_packed#3072cfa1 packed_data:bytes = Object`."""
    data: bytes

    def to_bytes(self) -> bytes:
        return struct.pack("<I", GZIP_PACKED_ID) + serialize_bytes(gzip.compress(self.data))

    @staticmethod
    def read(reader: BinaryReader) -> bytes:
        """Read the packed payload (after the constructor id) and inflate it."""
        packed = reader.read_tl_bytes()
        try:
            return gzip.decompress(packed)
        except (OSError, EOFError, zlib.error) as e:
            raise InvalidBufferError(packed) from e


@dataclass
class InvokeAfterMsg:
    """`invokeAfterMsg#cb9f372d msg_id:long query:!X = X`."""
    msg_id: int
    query: bytes

    def to_bytes(self) -> bytes:
        return struct.pack("<I", INVOKE_AFTER_MSG_ID) + long_to_bytes(self.msg_id) + self.query


class Serializer(ABC):
    """Interface to the schema layer that encodes and decodes payloads."""

    @abstractmethod
    def encode(self, obj: Any) -> bytes:
        """Serialize an object."""
        ...

    @abstractmethod
    def decode(self, reader: BinaryReader) -> Any:
        """Read one object from the reader."""
        ...

    def gzip_if_smaller(self, content_related: bool, data: bytes) -> bytes:
        """
        Wrap data in `gzip_packed` when it is worth it.

        Only content-related payloads above GZIP_MIN_SIZE bytes are
        considered, and the packed form is used only if it is smaller.
        """
        if content_related and len(data) > GZIP_MIN_SIZE:
            packed = GzipPacked(data).to_bytes()
            if len(packed) < len(data):
                return packed
        return data


class RawSerializer(Serializer):
    """
    Serializer for objects that already know their bytes.

    Encodes bytes as-is and anything with `to_bytes()`. Decoding inflates
    `gzip_packed` and returns everything else as a `TLObject`.
    """

    def encode(self, obj: Any) -> bytes:
        if isinstance(obj, (bytes, bytearray, memoryview)):
            return bytes(obj)
        if hasattr(obj, "to_bytes") and not isinstance(obj, int):
            return obj.to_bytes()
        raise TypeError(f"Cannot serialize {type(obj).__name__}")

    def decode(self, reader: BinaryReader) -> Any:
        constructor_id = reader.read_int(signed=False)
        if constructor_id == GZIP_PACKED_ID:
            return self.decode(BinaryReader(GzipPacked.read(reader)))
        return TLObject(constructor_id=constructor_id, data=reader.read())


def unpack_gzip(data: bytes) -> Optional[bytes]:
    """Inflate a serialized `gzip_packed` object, or None if data isn't one."""
    reader = BinaryReader(data)
    if reader.remaining() < 4 or reader.read_int(signed=False) != GZIP_PACKED_ID:
        return None
    return GzipPacked.read(reader)
