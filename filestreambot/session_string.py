"""Encoding of login data as a Pyrogram string session."""

from __future__ import annotations

import base64
import struct
from dataclasses import dataclass

AUTH_KEY_LENGTH = 256
AUTH_KEY_ID_LENGTH = 8


@dataclass(frozen=True)
class SessionData:
    """The parts of an authorised session that a string session carries."""

    dc: int
    auth_key: bytes
    auth_key_id: bytes
    test_mode: bool = False


def encode_pyrogram_session(data: SessionData, app_id: int) -> str:
    """Return the unpadded URL-safe base64 string session for ``data``."""
    if len(data.auth_key) != AUTH_KEY_LENGTH:
        raise ValueError("auth key must be 256 bytes long")
    if len(data.auth_key_id) != AUTH_KEY_ID_LENGTH:
        raise ValueError("auth key ID must be 8 bytes long")
    if not -(2**31) <= app_id < 2**31:
        raise ValueError("app ID must fit in 32 bits")
    payload = b"".join(
        (
            struct.pack(">BiB", data.dc & 0xFF, app_id, 1 if data.test_mode else 0),
            bytes(data.auth_key),
            bytes(data.auth_key_id),
            b"\x00",
        )
    )
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")