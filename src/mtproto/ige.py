"""AES-256 in Infinite Garble Extension (IGE) mode."""

import tgcrypto

from .types import BLOCK_SIZE


class IGE:
    """
    AES-IGE cipher over a 32-byte key and a 32-byte IV.

    IGE chains each block with both the previous ciphertext and the previous
    plaintext:

        c[i] = E(p[i] ^ c[i-1]) ^ p[i-1]

    where the IV provides c[-1] (first half) and p[-1] (second half).
    """

    def __init__(self, key: bytes, iv: bytes) -> None:
        if len(key) != 32:
            raise ValueError(f"Key must be 32 bytes, got {len(key)}")
        if len(iv) != 32:
            raise ValueError(f"IV must be 32 bytes, got {len(iv)}")
        self._key = key
        self._iv = iv

    def encrypt_ige(self, plaintext: bytes) -> bytes:
        """Encrypt 16-byte aligned plaintext."""
        _check_aligned(plaintext)
        if not plaintext:
            return b""
        return tgcrypto.ige256_encrypt(plaintext, self._key, self._iv)

    def decrypt_ige(self, ciphertext: bytes) -> bytes:
        """Decrypt 16-byte aligned ciphertext."""
        _check_aligned(ciphertext)
        if not ciphertext:
            return b""
        return tgcrypto.ige256_decrypt(ciphertext, self._key, self._iv)


def _check_aligned(data: bytes) -> None:
    if len(data) % BLOCK_SIZE != 0:
        raise ValueError(f"Data length must be a multiple of {BLOCK_SIZE}, got {len(data)}")
