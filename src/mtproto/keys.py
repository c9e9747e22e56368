"""Key derivation for MTProto 2.0 message encryption."""

from typing import Tuple

from cryptography.hazmat.primitives import hashes


def sha256(data: bytes) -> bytes:
    """SHA-256 digest of data."""
    digest = hashes.Hash(hashes.SHA256())
    digest.update(data)
    return digest.finalize()


def calc_key(auth_key: bytes, msg_key: bytes, client: bool) -> Tuple[bytes, bytes]:
    """
    Derive the AES key and IV for one message.

    The auth key window depends on the direction: x = 0 for messages sent by
    the client and x = 8 for messages sent by the server, so both sides
    derive the same pair for the same message.

        sha256_a = SHA256(msg_key + auth_key[x : x+36])
        sha256_b = SHA256(auth_key[x+40 : x+76] + msg_key)
        key = sha256_a[0:8] + sha256_b[8:24] + sha256_a[24:32]
        iv  = sha256_b[0:8] + sha256_a[8:24] + sha256_b[24:32]

    Args:
        auth_key: 256-byte authorization key
        msg_key: 16-byte message key
        client: True if the message originates from the client

    Returns:
        Tuple of (key, iv), 32 bytes each
    """
    x = 0 if client else 8
    sha256_a = sha256(msg_key + auth_key[x : x + 36])
    sha256_b = sha256(auth_key[x + 40 : x + 76] + msg_key)

    key = sha256_a[0:8] + sha256_b[8:24] + sha256_a[24:32]
    iv = sha256_b[0:8] + sha256_a[8:24] + sha256_b[24:32]
    return key, iv


def calc_msg_key(auth_key: bytes, data: bytes, client: bool) -> bytes:
    """
    Compute the 16-byte msg_key for padded plaintext.

    msg_key = SHA256(auth_key[88+x : 120+x] + data)[8:24]
    """
    x = 0 if client else 8
    return sha256(auth_key[88 + x : 120 + x] + data)[8:24]
