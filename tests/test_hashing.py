import pytest

from filestreambot.hashing import check_hash, get_short_hash, pack_file
from filestreambot.types import HashableFile


def test_pack_file_matches_hashable_file():
    assert pack_file("a.mp4", 100, "video/mp4", 5) == HashableFile("a.mp4", 100, "video/mp4", 5).pack()


@pytest.mark.parametrize("length", [5, 6, 32])
def test_short_hash_is_prefix(length):
    full = pack_file("a.mp4", 100, "video/mp4", 5)
    short = get_short_hash(full, length)
    assert len(short) == length
    assert full.startswith(short)


def test_check_hash_accepts_matching_short_hash():
    full = pack_file("song.mp3", 2048, "audio/mpeg", 77)
    assert check_hash(get_short_hash(full, 6), full, 6) is True


def test_check_hash_rejects_wrong_hash():
    full = pack_file("song.mp3", 2048, "audio/mpeg", 77)
    other = pack_file("song.mp3", 2049, "audio/mpeg", 77)
    assert check_hash(get_short_hash(other, 32), full, 32) is False


def test_check_hash_rejects_wrong_length():
    full = pack_file("song.mp3", 2048, "audio/mpeg", 77)
    assert check_hash(get_short_hash(full, 7), full, 6) is False


def test_short_hash_too_long_raises():
    full = pack_file("x", 1, "y", 2)
    with pytest.raises(ValueError):
        get_short_hash(full, len(full) + 1)