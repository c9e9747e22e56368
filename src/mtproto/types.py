"""Type definitions for the MTProto session state."""

from dataclasses import dataclass
from typing import Any


@dataclass
class DecryptedMessage:
    """A message decrypted from the server."""
    msg_id: int
    seq_no: int
    obj: Any


# Protocol constants
AUTH_KEY_SIZE = 256
KEY_ID_SIZE = 8
MSG_KEY_SIZE = 16
SESSION_ID_SIZE = 8
BLOCK_SIZE = 16
MIN_PADDING = 12
ENVELOPE_HEADER_SIZE = 16  # msg_id (8) + seq_no (4) + length (4)
PLAINTEXT_HEADER_SIZE = 32  # salt (8) + session_id (8) + ENVELOPE_HEADER_SIZE

# Message identifiers
MSG_ID_STEP = 4
REPLAY_WINDOW_SIZE = 500

# Compression
GZIP_MIN_SIZE = 512

# TL constructor ids
GZIP_PACKED_ID = 0x3072CFA1
INVOKE_AFTER_MSG_ID = 0xCB9F372D


# Exception types
class MTProtoError(Exception):
    """Base exception for MTProto state errors."""
    pass


class AuthKeyUnsetError(MTProtoError):
    """Encryption attempted without a usable authorization key."""

    def __init__(self, detail: str = "Auth key unset") -> None:
        super().__init__(detail)


class InvalidBufferError(MTProtoError):
    """Received payload is too short or malformed."""

    def __init__(self, payload: bytes) -> None:
        self.payload = payload
        super().__init__(f"Invalid buffer ({len(payload)} bytes)")


class SecurityError(MTProtoError):
    """A received message failed a security check."""
    pass


class InvalidAuthKeyError(SecurityError):
    """Server replied with an auth key id other than ours."""

    def __init__(self) -> None:
        super().__init__("invalid auth key")


class UnsetAuthKeyError(SecurityError):
    """Raw auth key bytes are not available for decryption."""

    def __init__(self) -> None:
        super().__init__("unset auth key")


class MsgKeyMismatchError(SecurityError):
    """Received msg_key doesn't match the one computed from the plaintext."""

    def __init__(self) -> None:
        super().__init__("msg_key mismatch")


class DuplicateMessageIdError(SecurityError):
    """Remote message id was already accepted recently."""

    def __init__(self, msg_id: int) -> None:
        self.msg_id = msg_id
        super().__init__(f"duplicate msgId {msg_id}")
