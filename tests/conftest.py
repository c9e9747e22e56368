"""Shared fixtures and a server-side counterpart for MTProto state tests."""

import os
import struct
from typing import Optional

import pytest

from mtproto.auth_key import AuthKey
from mtproto.ige import IGE
from mtproto.keys import calc_key, calc_msg_key
from mtproto.state import MTProtoState, StateConfig
from mtproto.tl import long_to_bytes


# Deterministic 256-byte key: 0x00, 0x01, ... 0xFF
TEST_AUTH_KEY = bytes(range(256))
TEST_SALT = 0x0123456789ABCDEF
UNIX_TIME = 1_700_000_000

# Arbitrary constructor id followed by a body the raw serializer returns verbatim
TEST_CONSTRUCTOR = 0x12345678
TEST_BODY = struct.pack("<I", TEST_CONSTRUCTOR) + b"hello, client!"


class FakeClock:
    """Wall clock under test control."""

    def __init__(self, now: float = float(UNIX_TIME)) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def server_encrypt(
    auth_key: bytes,
    session_id: int,
    msg_id: int,
    seq_no: int,
    body: bytes,
    salt: int = TEST_SALT,
    declared_len: Optional[int] = None,
) -> bytes:
    """Encrypt a message the way the server does (x = 8).

    `declared_len` overrides the inner body length written in the header.
    """
    if declared_len is None:
        declared_len = len(body)

    plaintext = (
        long_to_bytes(salt)
        + long_to_bytes(session_id)
        + long_to_bytes(msg_id)
        + struct.pack("<ii", seq_no, declared_len)
        + body
    )
    plaintext += os.urandom(-(len(plaintext) + 12) % 16 + 12)

    msg_key = calc_msg_key(auth_key, plaintext, client=False)
    key, iv = calc_key(auth_key, msg_key, client=False)
    key_id = AuthKey(auth_key).key_id
    return key_id + msg_key + IGE(key, iv).encrypt_ige(plaintext)


def server_decrypt(auth_key: bytes, data: bytes) -> bytes:
    """Decrypt a client message the way the server does and check its msg_key."""
    msg_key = data[8:24]
    key, iv = calc_key(auth_key, msg_key, client=True)
    plaintext = IGE(key, iv).decrypt_ige(data[24:])
    assert calc_msg_key(auth_key, plaintext, client=True) == msg_key
    return plaintext


@pytest.fixture
def clock():
    """Clock frozen at UNIX_TIME."""
    return FakeClock()


@pytest.fixture
def auth_key():
    """Auth key holder with the test key set."""
    return AuthKey(TEST_AUTH_KEY)


@pytest.fixture
def state(auth_key, clock):
    """State with the test key, salt and a frozen clock."""
    result = MTProtoState(auth_key, clock=clock)
    result.salt = TEST_SALT
    return result


@pytest.fixture
def relaxed_state(auth_key, clock):
    """State with security checks disabled."""
    result = MTProtoState(auth_key, config=StateConfig(security_checks=False), clock=clock)
    result.salt = TEST_SALT
    return result
