"""
mtproto - MTProto 2.0 session state

Python implementation of the client-side message state: key derivation,
message ids, sequence numbers, replay protection and AES-IGE encryption.
"""

from .auth_key import AuthKey
from .ige import IGE
from .keys import calc_key, calc_msg_key, sha256
from .ids import MessageIdGenerator, SequenceGenerator, msg_id_seconds
from .replay import ReplayWindow
from .tl import (
    BinaryReader,
    BinaryWriter,
    GzipPacked,
    InvokeAfterMsg,
    RawSerializer,
    Serializer,
    TLObject,
    serialize_bytes,
    deserialize_bytes,
)
from .envelope import (
    AfterPayload,
    MessageEnvelope,
    OutgoingPayload,
    PlainPayload,
    decode_message_envelope,
    encode_message_envelope,
)
from .state import MTProtoState, StateConfig
from .types import (
    DecryptedMessage,
    MTProtoError,
    AuthKeyUnsetError,
    InvalidBufferError,
    SecurityError,
    InvalidAuthKeyError,
    UnsetAuthKeyError,
    MsgKeyMismatchError,
    DuplicateMessageIdError,
)

__version__ = "0.1.0"

__all__ = [
    # Auth key
    "AuthKey",
    # Crypto
    "IGE",
    "calc_key",
    "calc_msg_key",
    "sha256",
    # Counters
    "MessageIdGenerator",
    "SequenceGenerator",
    "msg_id_seconds",
    "ReplayWindow",
    # TL
    "BinaryReader",
    "BinaryWriter",
    "GzipPacked",
    "InvokeAfterMsg",
    "RawSerializer",
    "Serializer",
    "TLObject",
    "serialize_bytes",
    "deserialize_bytes",
    # Envelope
    "AfterPayload",
    "MessageEnvelope",
    "OutgoingPayload",
    "PlainPayload",
    "decode_message_envelope",
    "encode_message_envelope",
    # State
    "MTProtoState",
    "StateConfig",
    # Types
    "DecryptedMessage",
    # Errors
    "MTProtoError",
    "AuthKeyUnsetError",
    "InvalidBufferError",
    "SecurityError",
    "InvalidAuthKeyError",
    "UnsetAuthKeyError",
    "MsgKeyMismatchError",
    "DuplicateMessageIdError",
]
