"""Content digests used to decide whether an output changed."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import BinaryIO, Optional, Union

CHUNK_SIZE = 1024 * 1024


def new_digest():
    return hashlib.sha1(usedforsecurity=False)


def digest_bytes(data: bytes) -> bytes:
    h = new_digest()
    h.update(data)
    return h.digest()


def digest_stream(fileobj: BinaryIO) -> bytes:
    h = new_digest()
    for chunk in iter(lambda: fileobj.read(CHUNK_SIZE), b""):
        h.update(chunk)
    return h.digest()


def digest_file(path: Union[str, Path]) -> Optional[bytes]:
    """Digest an existing file by streaming it; ``None`` when it does not exist.

    Every other ``OSError`` propagates.
    """
    try:
        f = open(path, "rb")
    except FileNotFoundError:
        return None
    with f:
        return digest_stream(f)
