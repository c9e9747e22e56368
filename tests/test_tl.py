"""Tests for TL helpers and message envelopes."""

import os
import struct

import pytest
from mtproto.envelope import (
    AfterPayload,
    MessageEnvelope,
    PlainPayload,
    decode_message_envelope,
    encode_message_envelope,
    payload_bytes,
    payload_for,
)
from mtproto.tl import (
    BinaryReader,
    BinaryWriter,
    GzipPacked,
    InvokeAfterMsg,
    RawSerializer,
    TLObject,
    deserialize_bytes,
    long_to_bytes,
    serialize_bytes,
    unpack_gzip,
)
from mtproto.types import GZIP_PACKED_ID, INVOKE_AFTER_MSG_ID, InvalidBufferError


class TestTLBytes:
    """Test TL `bytes` encoding."""

    @pytest.mark.parametrize("length", [0, 1, 3, 4, 253, 254, 255, 1000])
    def test_alignment_and_decode(self, length: int) -> None:
        """Encoded bytes are 4-byte aligned and decode back."""
        data = bytes(i % 256 for i in range(length))
        encoded = serialize_bytes(data)

        assert len(encoded) % 4 == 0
        assert deserialize_bytes(encoded) == data

    def test_long_form_header(self) -> None:
        """Values of 254+ bytes use the 0xFE marker and a 3-byte length."""
        encoded = serialize_bytes(bytes(300))
        assert encoded[0] == 254
        assert int.from_bytes(encoded[1:4], "little") == 300


class TestBinaryReader:
    """Test the little-endian reader."""

    def test_reads_fields(self) -> None:
        """Longs and ints are little-endian and signed by default."""
        reader = BinaryReader(struct.pack("<qiI", -2, -3, 7))
        assert reader.read_long() == -2
        assert reader.read_int() == -3
        assert reader.read_int(signed=False) == 7
        assert reader.remaining() == 0
        assert reader.tell_position() == 16

    def test_short_read(self) -> None:
        """Reading past the end raises InvalidBufferError."""
        reader = BinaryReader(b"\x01\x02")
        with pytest.raises(InvalidBufferError):
            reader.read_long()

    def test_long_to_bytes_wraps_unsigned(self) -> None:
        """Unsigned 64-bit values encode like their signed counterparts."""
        assert long_to_bytes(-1) == b"\xff" * 8
        assert long_to_bytes(0xFFFFFFFFFFFFFFFF) == b"\xff" * 8


class TestSerializer:
    """Test the raw serializer and gzip packing."""

    def test_small_payload_not_compressed(self) -> None:
        """Payloads up to 512 bytes are left alone."""
        data = b"a" * 512
        assert RawSerializer().gzip_if_smaller(True, data) == data

    def test_non_content_not_compressed(self) -> None:
        """Non-content payloads are never compressed."""
        data = b"a" * 4096
        assert RawSerializer().gzip_if_smaller(False, data) == data

    def test_compressible_payload_packed(self) -> None:
        """Large compressible content payloads become gzip_packed."""
        data = b"a" * 4096
        packed = RawSerializer().gzip_if_smaller(True, data)

        assert len(packed) < len(data)
        assert struct.unpack("<I", packed[:4])[0] == GZIP_PACKED_ID
        assert unpack_gzip(packed) == data

    def test_incompressible_payload_kept(self) -> None:
        """Compression that doesn't shrink the payload is discarded."""
        data = os.urandom(2048)
        assert RawSerializer().gzip_if_smaller(True, data) == data

    def test_decode_unknown_object(self) -> None:
        """Unknown constructors come back as TLObject."""
        obj = RawSerializer().decode(BinaryReader(struct.pack("<I", 0xDEADBEEF) + b"rest"))
        assert obj == TLObject(constructor_id=0xDEADBEEF, data=b"rest")

    def test_decode_gzip_packed(self) -> None:
        """gzip_packed is inflated transparently."""
        inner = TLObject(constructor_id=0x11223344, data=b"x" * 100)
        packed = GzipPacked(inner.to_bytes()).to_bytes()

        assert RawSerializer().decode(BinaryReader(packed)) == inner

    def test_decode_corrupt_gzip(self) -> None:
        """Corrupt packed data raises InvalidBufferError."""
        packed = struct.pack("<I", GZIP_PACKED_ID) + serialize_bytes(b"not gzip")
        with pytest.raises(InvalidBufferError):
            RawSerializer().decode(BinaryReader(packed))

    def test_encode(self) -> None:
        """Bytes and objects with to_bytes encode; other values don't."""
        serializer = RawSerializer()
        assert serializer.encode(b"abc") == b"abc"
        assert serializer.encode(TLObject(1, b"z")) == b"\x01\x00\x00\x00z"
        with pytest.raises(TypeError):
            serializer.encode(42)

    def test_unpack_gzip_other_object(self) -> None:
        """unpack_gzip returns None for anything else."""
        assert unpack_gzip(b"\x00\x00\x00\x00") is None
        assert unpack_gzip(b"") is None


class TestEnvelope:
    """Test message envelope framing."""

    def test_header_layout(self) -> None:
        """Header is msg_id (8), seq_no (4), length (4), all little-endian."""
        envelope = MessageEnvelope(msg_id=(1_700_000_000 << 32) | 4, seq_no=7, body=b"body")
        encoded = encode_message_envelope(envelope)

        assert encoded[:8] == ((1_700_000_000 << 32) | 4).to_bytes(8, "little")
        assert encoded[8:12] == (7).to_bytes(4, "little")
        assert encoded[12:16] == (4).to_bytes(4, "little")
        assert encoded[16:] == b"body"

    def test_decode(self) -> None:
        """Decoding reads exactly one envelope and ignores trailing bytes."""
        envelope = MessageEnvelope(msg_id=-8, seq_no=3, body=b"abc")
        decoded = decode_message_envelope(encode_message_envelope(envelope) + b"pad")
        assert decoded == envelope

    def test_decode_truncated(self) -> None:
        """Truncated envelopes raise InvalidBufferError."""
        encoded = encode_message_envelope(MessageEnvelope(msg_id=4, seq_no=1, body=b"abcdef"))
        with pytest.raises(InvalidBufferError):
            decode_message_envelope(encoded[:10])
        with pytest.raises(InvalidBufferError):
            decode_message_envelope(encoded[:-1])

    def test_payload_variants(self) -> None:
        """An after id selects the invokeAfterMsg wrapper."""
        assert payload_for(b"q") == PlainPayload(data=b"q")
        assert payload_for(b"q", 12) == AfterPayload(data=b"q", after_id=12)

    def test_after_payload_bytes(self) -> None:
        """invokeAfterMsg carries the prior id and the query verbatim."""
        data = payload_bytes(AfterPayload(data=b"query", after_id=0x0102030405060708))

        assert data == InvokeAfterMsg(msg_id=0x0102030405060708, query=b"query").to_bytes()
        assert struct.unpack("<I", data[:4])[0] == INVOKE_AFTER_MSG_ID
        assert data[4:12] == (0x0102030405060708).to_bytes(8, "little")
        assert data[12:] == b"query"

    def test_writer(self) -> None:
        """BinaryWriter concatenates writes."""
        writer = BinaryWriter()
        writer.write(b"ab")
        writer.write(b"cd")
        assert writer.get_value() == b"abcd"
        assert len(writer) == 4
