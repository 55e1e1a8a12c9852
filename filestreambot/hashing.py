"""Short hashes that authorise stream links."""

from __future__ import annotations

from .types import HashableFile


def pack_file(file_name: str, file_size: int, mime_type: str, file_id: int) -> str:
    """Return the full hash of a file's properties."""
    return HashableFile(file_name, file_size, mime_type, file_id).pack()


def get_short_hash(full_hash: str, length: int) -> str:
    """Return the first ``length`` characters of ``full_hash``."""
    if length < 0 or length > len(full_hash):
        raise ValueError(f"hash length {length} out of range for a hash of {len(full_hash)} characters")
    return full_hash[:length]


def check_hash(input_hash: str, expected_hash: str, length: int) -> bool:
    """Tell whether ``input_hash`` is the short form of ``expected_hash``."""
    return input_hash == get_short_hash(expected_hash, length)