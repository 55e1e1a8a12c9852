"""Telegram media descriptions and their conversion to streamable files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol, TypeVar

from .cache import CacheMiss, FileCache
from .types import File

log = logging.getLogger("filestreambot.media")

CACHE_EXPIRE_SECONDS = 3600

T = TypeVar("T")


class MediaError(ValueError):
    """Raised when a message's media cannot be turned into a file."""


@dataclass(frozen=True)
class DocumentLocation:
    """Where a document's bytes are fetched from."""

    id: int
    access_hash: int
    file_reference: bytes
    thumb_size: str = ""


@dataclass(frozen=True)
class PhotoLocation:
    """Where one size of a photo is fetched from."""

    id: int
    access_hash: int
    file_reference: bytes
    thumb_size: str


@dataclass(frozen=True)
class Document:
    """A non-empty Telegram document."""

    id: int
    access_hash: int
    file_reference: bytes
    size: int
    mime_type: str
    file_name: str = ""

    def as_input_location(self) -> DocumentLocation:
        return DocumentLocation(self.id, self.access_hash, self.file_reference)


@dataclass(frozen=True)
class PhotoSize:
    """One available size of a photo; ``empty`` marks a placeholder size."""

    type: str
    empty: bool = False


@dataclass(frozen=True)
class Photo:
    """A non-empty Telegram photo with its sizes, smallest first."""

    id: int
    access_hash: int
    file_reference: bytes
    sizes: list[PhotoSize] = field(default_factory=list)


@dataclass(frozen=True)
class MessageMediaDocument:
    """Document media; ``document`` is None when the document is empty."""

    document: Document | None


@dataclass(frozen=True)
class MessageMediaPhoto:
    """Photo media; ``photo`` is None when the photo is empty."""

    photo: Photo | None


class _Message(Protocol):
    media: Any


class _MessageClient(Protocol):
    self_id: int

    async def get_message(self, message_id: int) -> _Message | None: ...


def contains(items: Iterable[T], item: T) -> bool:
    """Tell whether ``item`` is among ``items``."""
    return item in items


def file_from_media(media: Any) -> File:
    """Describe the file carried by a document or photo media."""
    if isinstance(media, MessageMediaDocument):
        document = media.document
        if document is None:
            raise MediaError(f"unexpected type {type(media).__name__}")
        return File(
            location=document.as_input_location(),
            file_size=document.size,
            file_name=document.file_name,
            mime_type=document.mime_type,
            id=document.id,
        )
    if isinstance(media, MessageMediaPhoto):
        photo = media.photo
        if photo is None:
            raise MediaError(f"unexpected type {type(media).__name__}")
        if not photo.sizes:
            raise MediaError("photo has no sizes")
        size = photo.sizes[-1]
        if size.empty:
            raise MediaError("photo size is empty")
        location = PhotoLocation(photo.id, photo.access_hash, photo.file_reference, size.type)
        return File(
            location=location,
            file_size=0,  # a size of zero marks a photo to the server
            file_name=f"photo_{photo.id}.jpg",
            mime_type="image/jpeg",
            id=photo.id,
        )
    raise MediaError(f"unexpected type {type(media).__name__}")


async def file_from_message(client: _MessageClient, message_id: int, cache: FileCache) -> File:
    """Return the file of a log-channel message, using ``cache`` when possible."""
    key = f"file:{message_id}:{client.self_id}"
    try:
        cached = cache.get(key)
    except CacheMiss:
        pass
    else:
        log.debug("Using cached media message properties (message %d, client %d)", message_id, client.self_id)
        return cached
    log.debug("Fetching file properties from message %d (client %d)", message_id, client.self_id)
    message = await client.get_message(message_id)
    if message is None:
        raise MediaError("this file was deleted")
    file = file_from_media(message.media)
    cache.set(key, file, CACHE_EXPIRE_SECONDS)
    return file