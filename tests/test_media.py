from dataclasses import dataclass
from typing import Any

import pytest

from filestreambot.cache import FileCache
from filestreambot.media import (
    Document,
    DocumentLocation,
    MediaError,
    MessageMediaDocument,
    MessageMediaPhoto,
    Photo,
    PhotoLocation,
    PhotoSize,
    contains,
    file_from_media,
    file_from_message,
)


def make_document(**kwargs):
    values = dict(id=11, access_hash=22, file_reference=b"ref", size=5000, mime_type="video/mp4", file_name="clip.mp4")
    values.update(kwargs)
    return Document(**values)


def test_contains():
    assert contains([1, 2, 3], 2) is True
    assert contains([1, 2, 3], 4) is False
    assert contains([], 1) is False


def test_document_media():
    file = file_from_media(MessageMediaDocument(make_document()))
    assert file.file_name == "clip.mp4"
    assert file.file_size == 5000
    assert file.mime_type == "video/mp4"
    assert file.id == 11
    assert file.location == DocumentLocation(11, 22, b"ref", "")


def test_document_without_name():
    file = file_from_media(MessageMediaDocument(make_document(file_name="")))
    assert file.file_name == ""


def test_empty_document_raises():
    with pytest.raises(MediaError):
        file_from_media(MessageMediaDocument(None))


def test_photo_uses_last_size():
    photo = Photo(id=77, access_hash=88, file_reference=b"p", sizes=[PhotoSize("s"), PhotoSize("y")])
    file = file_from_media(MessageMediaPhoto(photo))
    assert file.file_size == 0
    assert file.file_name == "photo_77.jpg"
    assert file.mime_type == "image/jpeg"
    assert file.id == 77
    assert file.location == PhotoLocation(77, 88, b"p", "y")


def test_photo_without_sizes_raises():
    with pytest.raises(MediaError, match="photo has no sizes"):
        file_from_media(MessageMediaPhoto(Photo(1, 2, b"", [])))


def test_photo_with_empty_last_size_raises():
    photo = Photo(1, 2, b"", [PhotoSize("s"), PhotoSize("", empty=True)])
    with pytest.raises(MediaError, match="photo size is empty"):
        file_from_media(MessageMediaPhoto(photo))


def test_empty_photo_raises():
    with pytest.raises(MediaError):
        file_from_media(MessageMediaPhoto(None))


def test_other_media_raises():
    with pytest.raises(MediaError, match="unexpected type"):
        file_from_media("geo point")


@dataclass
class FakeMessage:
    media: Any


class FakeClient:
    def __init__(self, messages):
        self.self_id = 42
        self.messages = messages
        self.calls = 0

    async def get_message(self, message_id):
        self.calls += 1
        return self.messages.get(message_id)


@pytest.mark.asyncio
async def test_file_from_message_uses_cache():
    client = FakeClient({5: FakeMessage(MessageMediaDocument(make_document()))})
    cache = FileCache()
    first = await file_from_message(client, 5, cache)
    second = await file_from_message(client, 5, cache)
    assert first == second
    assert client.calls == 1
    assert cache.get("file:5:42") == first


@pytest.mark.asyncio
async def test_file_from_message_deleted():
    client = FakeClient({})
    with pytest.raises(MediaError, match="this file was deleted"):
        await file_from_message(client, 9, FileCache())


@pytest.mark.asyncio
async def test_file_from_message_bad_media_not_cached():
    client = FakeClient({3: FakeMessage(None)})
    cache = FileCache()
    with pytest.raises(MediaError):
        await file_from_message(client, 3, cache)
    assert len(cache) == 0