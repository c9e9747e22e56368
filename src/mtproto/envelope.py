"""Message envelope encoding and decoding."""

from dataclasses import dataclass
from typing import Optional, Union

from .tl import BinaryReader, InvokeAfterMsg, long_to_bytes
from .types import ENVELOPE_HEADER_SIZE, InvalidBufferError


@dataclass
class PlainPayload:
    """A payload sent as-is."""
    data: bytes


@dataclass
class AfterPayload:
    """A payload that the server must process after message `after_id`."""
    data: bytes
    after_id: int


OutgoingPayload = Union[PlainPayload, AfterPayload]


def payload_for(data: bytes, after_id: Optional[int] = None) -> OutgoingPayload:
    """Pick the payload variant for optional "send after" ordering."""
    if after_id:
        return AfterPayload(data=data, after_id=after_id)
    return PlainPayload(data=data)


def payload_bytes(payload: OutgoingPayload) -> bytes:
    """Resolve a payload into the bytes placed in the envelope body."""
    if isinstance(payload, AfterPayload):
        return InvokeAfterMsg(msg_id=payload.after_id, query=payload.data).to_bytes()
    return payload.data


@dataclass
class MessageEnvelope:
    """One framed message inside the encrypted plaintext."""
    msg_id: int
    seq_no: int
    body: bytes


def encode_message_envelope(envelope: MessageEnvelope) -> bytes:
    """
    Encode an envelope to bytes.

    Format (16-byte header + body):
        [0-7]    msg_id (signed little-endian)
        [8-11]   seq_no (little-endian)
        [12-15]  body length (little-endian)
        [16+]    body

    Args:
        envelope: MessageEnvelope to encode

    Returns:
        Encoded bytes
    """
    return (
        long_to_bytes(envelope.msg_id)
        + envelope.seq_no.to_bytes(4, byteorder="little", signed=True)
        + len(envelope.body).to_bytes(4, byteorder="little", signed=True)
        + envelope.body
    )


def decode_message_envelope(data: bytes) -> MessageEnvelope:
    """
    Decode one envelope from the start of data; trailing bytes are ignored.

    Raises:
        InvalidBufferError: If the header or body is truncated
    """
    if len(data) < ENVELOPE_HEADER_SIZE:
        raise InvalidBufferError(data)

    reader = BinaryReader(data)
    msg_id = reader.read_long()
    seq_no = reader.read_int()
    length = reader.read_int()
    if length < 0:
        raise InvalidBufferError(data)

    return MessageEnvelope(msg_id=msg_id, seq_no=seq_no, body=reader.read(length))
