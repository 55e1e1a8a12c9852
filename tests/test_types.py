import string

from filestreambot.types import File, HashableFile, RootResponse


def test_pack_is_hex_md5_digest():
    digest = HashableFile("movie.mkv", 1024, "video/x-matroska", 42).pack()
    assert len(digest) == 32
    assert set(digest) <= set(string.hexdigits.lower())


def test_pack_is_deterministic():
    a = HashableFile("a.txt", 10, "text/plain", 7)
    b = HashableFile("a.txt", 10, "text/plain", 7)
    assert a.pack() == b.pack()


def test_pack_changes_with_each_field():
    base = HashableFile("a.txt", 10, "text/plain", 7)
    variants = [
        HashableFile("b.txt", 10, "text/plain", 7),
        HashableFile("a.txt", 11, "text/plain", 7),
        HashableFile("a.txt", 10, "text/html", 7),
        HashableFile("a.txt", 10, "text/plain", 8),
    ]
    digests = {v.pack() for v in variants}
    assert base.pack() not in digests
    assert len(digests) == len(variants)


def test_pack_hashes_plain_concatenation():
    # Fields are written without separators, so these two collide.
    assert HashableFile("a", 12, "b", 3).pack() == HashableFile("a1", 2, "b", 3).pack()


def test_root_response_to_dict():
    response = RootResponse(message="Server is running.", ok=True, uptime="1 second", version="3.1.0")
    assert response.to_dict() == {
        "message": "Server is running.",
        "ok": True,
        "uptime": "1 second",
        "version": "3.1.0",
    }


def test_file_fields():
    f = File(location=("doc", 1), file_size=5, file_name="x.bin", mime_type="application/octet-stream", id=9)
    assert (f.file_size, f.file_name, f.id) == (5, "x.bin", 9)
    assert f.location == ("doc", 1)