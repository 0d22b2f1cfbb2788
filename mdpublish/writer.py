"""Checksum-gated, atomic writes of generated pages and copied assets.

A destination is only replaced when the digest of the new content differs
from the digest of what is already on disk. Replacement goes through a
hidden staging file in the destination's directory followed by
``os.replace``, so readers never see a half-written file.
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
import threading
from pathlib import Path
from typing import BinaryIO, Dict, Tuple, Union

from mdpublish.checksums import CHUNK_SIZE, digest_bytes, digest_file, digest_stream, new_digest
from mdpublish.config import PublishOptions
from mdpublish.errors import AssetPolicyError

logger = logging.getLogger(__name__)

FILE_MODE = 0o644

PathLike = Union[str, Path]


def destination_key(path: PathLike) -> str:
    """Identity of a destination path, shared by locking and collision grouping."""
    return os.path.normcase(os.path.abspath(path))


class PathLocks:
    """One lock per destination path, so concurrent writers never interleave."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def lock_for(self, path: PathLike) -> threading.Lock:
        key = destination_key(path)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock


# -- helpers: staging --
def _stage(destination: Path) -> Tuple[BinaryIO, Path]:
    destination.parent.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(
        prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent
    )
    return os.fdopen(fd, "wb"), Path(name)


def _commit(staged: Path, destination: Path) -> None:
    os.chmod(staged, FILE_MODE)
    os.replace(staged, destination)


def _log_same(options: PublishOptions, destination: Path, digest: bytes) -> None:
    if not options.quiet:
        logger.info("same checksum: %s (%s)", destination, digest.hex())


def _log_update(options: PublishOptions, destination: Path, digest: bytes) -> None:
    if not options.quiet:
        logger.info("updating file: %s (%s)", destination, digest.hex())


# -- writes --
def write_if_changed(
    data: bytes, destination: PathLike, options: PublishOptions, locks: PathLocks
) -> Tuple[bool, bytes]:
    """Write ``data`` to ``destination`` unless it already holds the same bytes.

    Returns ``(written, digest)``; when nothing was written the digest is the
    one of the existing file.
    """
    destination = Path(destination)
    digest = digest_bytes(data)

    with locks.lock_for(destination):
        existing = digest_file(destination)
        if existing == digest:
            _log_same(options, destination, existing)
            return False, existing

        _log_update(options, destination, digest)
        handle, staged = _stage(destination)
        try:
            with handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            _commit(staged, destination)
        finally:
            staged.unlink(missing_ok=True)

    return True, digest


def copy_if_changed(
    source: PathLike, destination: PathLike, options: PublishOptions, locks: PathLocks
) -> Tuple[bool, bytes]:
    """Mirror ``source`` to ``destination`` with the same gate as ``write_if_changed``.

    An existing destination is compared against a read-only hash of the
    source first, so an unchanged asset is never staged. Otherwise the source
    is hashed while it streams into the staging file. Content is never held
    in memory.
    """
    source = Path(source)
    destination = Path(destination)

    info = os.lstat(source)
    if not stat.S_ISREG(info.st_mode):
        raise AssetPolicyError(f"{source} is not a regular file")

    with locks.lock_for(destination):
        existing = digest_file(destination)
        if existing is not None:
            with open(source, "rb") as fin:
                if digest_stream(fin) == existing:
                    _log_same(options, destination, existing)
                    return False, existing

        handle, staged = _stage(destination)
        try:
            h = new_digest()
            with handle, open(source, "rb") as fin:
                for chunk in iter(lambda: fin.read(CHUNK_SIZE), b""):
                    h.update(chunk)
                    handle.write(chunk)
                handle.flush()
                os.fsync(handle.fileno())
            digest = h.digest()

            _log_update(options, destination, digest)
            _commit(staged, destination)
        finally:
            staged.unlink(missing_ok=True)

    return True, digest
