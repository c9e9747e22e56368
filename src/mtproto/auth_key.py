"""Authorization key holder shared between the state and the connection."""

import asyncio
from typing import Optional

from cryptography.hazmat.primitives import hashes

from .types import AUTH_KEY_SIZE


def sha1(data: bytes) -> bytes:
    """SHA-1 digest of data."""
    digest = hashes.Hash(hashes.SHA1())
    digest.update(data)
    return digest.finalize()


class AuthKey:
    """
    The 2048-bit authorization key negotiated with the server.

    The key may not be known yet when the state is created; encryption waits
    on `wait_for_key` until the connection layer calls `set_key`.
    """

    def __init__(self, data: Optional[bytes] = None) -> None:
        """Creates a key holder, optionally with the raw key already known."""
        self._ready = asyncio.Event()
        self._key: Optional[bytes] = None
        self._key_id: Optional[bytes] = None
        self._aux_hash: Optional[bytes] = None
        self.set_key(data)

    def set_key(self, data: Optional[bytes]) -> None:
        """
        Set (or clear, with None) the raw key bytes.

        Raises:
            ValueError: If the key is not 256 bytes long
        """
        if data is None:
            self._key = self._key_id = self._aux_hash = None
            self._ready.clear()
            return

        if len(data) != AUTH_KEY_SIZE:
            raise ValueError(f"Auth key must be {AUTH_KEY_SIZE} bytes, got {len(data)}")

        digest = sha1(data)
        self._key = bytes(data)
        self._aux_hash = digest[0:8]
        self._key_id = digest[12:20]
        self._ready.set()

    def get_key(self) -> Optional[bytes]:
        """Raw key bytes, or None while the key is unknown."""
        return self._key

    @property
    def key_id(self) -> Optional[bytes]:
        """8-byte key identifier exactly as sent on the wire."""
        return self._key_id

    @property
    def key_id_int(self) -> Optional[int]:
        """Signed integer view of the key identifier."""
        if self._key_id is None:
            return None
        return int.from_bytes(self._key_id, byteorder="little", signed=True)

    @property
    def aux_hash(self) -> Optional[bytes]:
        """First 8 bytes of SHA-1 of the key."""
        return self._aux_hash

    @property
    def is_ready(self) -> bool:
        """Whether the raw key is available."""
        return self._ready.is_set()

    async def wait_for_key(self, timeout: Optional[float] = None) -> None:
        """
        Suspend until the key is set.

        Args:
            timeout: Seconds to wait, or None to wait until cancelled

        Raises:
            asyncio.TimeoutError: If the timeout elapses first
        """
        if timeout is None:
            await self._ready.wait()
        else:
            await asyncio.wait_for(self._ready.wait(), timeout)

    def __bool__(self) -> bool:
        return self._key is not None
