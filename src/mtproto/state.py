"""
MTProto 2.0 session state.

An MTProtoState holds what a sender needs to frame, encrypt and decrypt
messages for one connection: the auth key, the session id and salt, the
message id and sequence counters and the window of recently seen remote
message ids.

Example usage:
    ```python
    state = MTProtoState(auth_key)
    state.salt = server_salt

    buffer = BinaryWriter()
    msg_id = state.write_data_as_message(buffer, request_bytes, content_related=True)
    wire = await state.encrypt_message_data(buffer.get_value())

    message = state.decrypt_message_data(received)
    print(message.msg_id, message.seq_no, message.obj)
    ```

The state is not thread-safe. All calls for one instance must come from a
single task (or be serialized by the caller) so ids stay monotonic and
sequence numbers keep their odd/even meaning.
"""

import asyncio
import hmac
import os
import time
from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from .auth_key import AuthKey
from .envelope import MessageEnvelope, encode_message_envelope, payload_bytes, payload_for
from .ids import MessageIdGenerator, SequenceGenerator
from .ige import IGE
from .keys import calc_key, calc_msg_key
from .replay import ReplayWindow
from .tl import BinaryReader, BinaryWriter, RawSerializer, Serializer, long_to_bytes
from .types import (
    BLOCK_SIZE,
    KEY_ID_SIZE,
    MIN_PADDING,
    MSG_KEY_SIZE,
    PLAINTEXT_HEADER_SIZE,
    REPLAY_WINDOW_SIZE,
    SESSION_ID_SIZE,
    AuthKeyUnsetError,
    DecryptedMessage,
    InvalidAuthKeyError,
    InvalidBufferError,
    MsgKeyMismatchError,
    UnsetAuthKeyError,
)

logger = structlog.get_logger(__name__)


@dataclass
class StateConfig:
    """Configuration for the session state."""
    security_checks: bool = True
    replay_window_size: int = REPLAY_WINDOW_SIZE
    auth_key_timeout: Optional[float] = None


def generate_session_id() -> int:
    """Random signed 64-bit session id."""
    return int.from_bytes(os.urandom(SESSION_ID_SIZE), byteorder="little", signed=True)


class MTProtoState:
    """Encryption and sequencing state for one MTProto connection."""

    def __init__(
        self,
        auth_key: Optional[AuthKey],
        config: Optional[StateConfig] = None,
        serializer: Optional[Serializer] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the state.

        Args:
            auth_key: Shared auth key holder; may not have its key yet.
            config: Optional configuration (default: security checks on,
                500-id replay window, no auth key timeout).
            serializer: Schema layer for payloads (default: RawSerializer).
            clock: Source of wall-clock seconds.
        """
        self.auth_key = auth_key
        self._config = config or StateConfig()
        self._serializer = serializer or RawSerializer()
        self._ids = MessageIdGenerator(clock)
        self._sequence = SequenceGenerator()
        self._replay = ReplayWindow(
            size=self._config.replay_window_size,
            security_checks=self._config.security_checks,
        )
        self.salt: Optional[int] = 0
        self.id: Optional[int] = None
        self.reset()

    def reset(self) -> None:
        """Start a new session: fresh session id, counters and replay window."""
        old_id = self.id
        new_id = generate_session_id()
        while new_id == old_id:
            new_id = generate_session_id()

        self.id = new_id
        self._sequence.reset()
        self._ids.reset()
        self._replay.clear()

    @property
    def time_offset(self) -> int:
        """Seconds added to the local clock to match the server."""
        return self._ids.time_offset

    @property
    def security_checks(self) -> bool:
        """Whether duplicate remote ids are rejected."""
        return self._replay.security_checks

    @security_checks.setter
    def security_checks(self, value: bool) -> None:
        self._replay.security_checks = value

    def update_message_id(self, message: MessageEnvelope) -> None:
        """Give an already framed message a fresh id (after a time offset change)."""
        message.msg_id = self._ids.next_id()

    def update_time_offset(self, correct_msg_id: int) -> int:
        """Correct the clock skew from a message id known to be valid."""
        return self._ids.update_time_offset(correct_msg_id)

    def write_data_as_message(
        self,
        buffer: BinaryWriter,
        data: bytes,
        content_related: bool,
        after_id: Optional[int] = None,
    ) -> int:
        """
        Frame data as a message and write it into buffer.

        Args:
            buffer: Sink receiving the framed message
            data: Serialized request
            content_related: Whether the message needs an acknowledgement
            after_id: Message id the server must process this one after

        Returns:
            The id of the new message
        """
        msg_id = self._ids.next_id()
        seq_no = self._sequence.next_seq_no(content_related)
        body = self._serializer.gzip_if_smaller(
            content_related, payload_bytes(payload_for(data, after_id))
        )

        buffer.write(encode_message_envelope(MessageEnvelope(msg_id=msg_id, seq_no=seq_no, body=body)))
        return msg_id

    async def encrypt_message_data(self, data: bytes) -> bytes:
        """
        Encrypt framed messages with the current auth key.

        Waits until the auth key is available (bounded by
        `StateConfig.auth_key_timeout` when set).

        Returns:
            key_id (8) + msg_key (16) + AES-IGE ciphertext

        Raises:
            AuthKeyUnsetError: If there is no usable key, key id, salt or
                session id
        """
        if self.auth_key is None:
            raise AuthKeyUnsetError()

        try:
            await self.auth_key.wait_for_key(self._config.auth_key_timeout)
        except asyncio.TimeoutError as e:
            raise AuthKeyUnsetError("Timed out waiting for auth key") from e

        auth_key = self.auth_key.get_key()
        if auth_key is None:
            raise AuthKeyUnsetError()
        if self.salt is None or self.id is None or self.auth_key.key_id is None:
            raise AuthKeyUnsetError("Unset params")

        data = long_to_bytes(self.salt) + long_to_bytes(self.id) + data
        padding = os.urandom(-(len(data) + MIN_PADDING) % BLOCK_SIZE + MIN_PADDING)

        msg_key = calc_msg_key(auth_key, data + padding, client=True)
        key, iv = calc_key(auth_key, msg_key, client=True)

        return self.auth_key.key_id + msg_key + IGE(key, iv).encrypt_ige(data + padding)

    def decrypt_message_data(self, body: bytes) -> DecryptedMessage:
        """
        Decrypt a message received from the server.

        The msg_key is verified before any plaintext field is read. A
        session id other than ours is tolerated (logged only): some servers
        send a different one around handshakes.

        Raises:
            InvalidBufferError: If body is too short or misaligned
            InvalidAuthKeyError: If the key id isn't ours
            UnsetAuthKeyError: If the raw key is unavailable
            MsgKeyMismatchError: If the integrity check fails
            DuplicateMessageIdError: If the remote id was seen recently
        """
        if self.auth_key is None:
            raise UnsetAuthKeyError()
        if len(body) < KEY_ID_SIZE:
            raise InvalidBufferError(body)

        key_id = body[:KEY_ID_SIZE]
        if self.auth_key.key_id is None or key_id != self.auth_key.key_id:
            raise InvalidAuthKeyError()

        auth_key = self.auth_key.get_key()
        if auth_key is None:
            raise UnsetAuthKeyError()

        msg_key = body[KEY_ID_SIZE : KEY_ID_SIZE + MSG_KEY_SIZE]
        ciphertext = body[KEY_ID_SIZE + MSG_KEY_SIZE :]
        if len(msg_key) != MSG_KEY_SIZE or not ciphertext or len(ciphertext) % BLOCK_SIZE:
            raise InvalidBufferError(body)

        key, iv = calc_key(auth_key, msg_key, client=False)
        plaintext = IGE(key, iv).decrypt_ige(ciphertext)

        if not hmac.compare_digest(msg_key, calc_msg_key(auth_key, plaintext, client=False)):
            raise MsgKeyMismatchError()

        if len(plaintext) < PLAINTEXT_HEADER_SIZE:
            raise InvalidBufferError(body)

        reader = BinaryReader(plaintext)
        reader.read_long()  # salt
        session_id = reader.read_long()
        if session_id != self.id:
            logger.debug("session_id_mismatch", expected=self.id, received=session_id)

        remote_msg_id = reader.read_long()
        remote_sequence = reader.read_int()
        length = reader.read_int()
        if length < 0:
            raise InvalidBufferError(body)
        inner = reader.read(length)

        self._replay.check_and_record(remote_msg_id)

        obj = self._serializer.decode(BinaryReader(inner))
        return DecryptedMessage(msg_id=remote_msg_id, seq_no=remote_sequence, obj=obj)
