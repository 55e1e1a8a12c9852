"""Data types shared across the bot and the HTTP server."""

from __future__ import annotations

import hashlib
from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class File:
    """A streamable Telegram file and where to fetch it from."""

    location: Any
    file_size: int
    file_name: str
    mime_type: str
    id: int


@dataclass(frozen=True)
class HashableFile:
    """The file properties that a link hash is derived from."""

    file_name: str
    file_size: int
    mime_type: str
    file_id: int

    def pack(self) -> str:
        """Return the hex MD5 digest of the fields written one after another."""
        hasher = hashlib.md5()
        for value in (self.file_name, self.file_size, self.mime_type, self.file_id):
            hasher.update(str(value).encode("utf-8"))
        return hasher.hexdigest()


@dataclass(frozen=True)
class RootResponse:
    """Body of the server's status endpoint."""

    message: str
    ok: bool
    uptime: str
    version: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)