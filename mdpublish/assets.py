"""Mirror an asset tree (images, stylesheets, ...) into the destination tree."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Tuple, Union

from mdpublish.config import PublishOptions
from mdpublish.pool import run_jobs
from mdpublish.writer import PathLocks, copy_if_changed

logger = logging.getLogger(__name__)


class AssetEntry:
    """A file under the asset root, mirrored verbatim to the same relative path."""

    def __init__(self, relative_path: str, source: Path, destination: Path):
        self.relative_path = relative_path
        self.source = source
        self.destination = destination

    def __repr__(self) -> str:
        return f"AssetEntry({self.relative_path!r})"


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def scan_assets(asset_root: Union[str, Path], destination_root: Union[str, Path]) -> List[AssetEntry]:
    """List every non-hidden, non-directory entry under ``asset_root`` in sorted order.

    Only an entry's own name is checked, so files inside hidden directories
    are still listed unless their own name is hidden.
    """
    asset_root = Path(asset_root)
    destination_root = Path(destination_root)
    if not asset_root.is_dir():
        raise NotADirectoryError(f"asset directory not found: {asset_root}")

    def _raise(exc: OSError) -> None:
        raise exc

    entries: List[AssetEntry] = []
    for dirpath, dirnames, filenames in os.walk(asset_root, onerror=_raise):
        dirnames.sort()
        current = Path(dirpath)
        # links to directories are not followed; they are listed and rejected on sync
        linked = [d for d in dirnames if (current / d).is_symlink()]
        for name in sorted(filenames + linked):
            if is_hidden(name):
                continue
            rel = (current / name).relative_to(asset_root)
            entries.append(AssetEntry(rel.as_posix(), current / name, destination_root / rel))
    return entries


def sync_asset(entry: AssetEntry, options: PublishOptions, locks: PathLocks) -> Tuple[bool, bytes]:
    return copy_if_changed(entry.source, entry.destination, options, locks)


def sync_assets(
    asset_root: Union[str, Path],
    destination_root: Union[str, Path],
    options: PublishOptions,
    locks: PathLocks,
) -> List[Tuple[bool, bytes]]:
    """Mirror the whole asset tree, on up to ``options.jobs`` workers."""
    if not options.quiet:
        logger.info("scanning for assets: %s", asset_root)
    entries = scan_assets(asset_root, destination_root)
    return run_jobs(lambda entry: sync_asset(entry, options, locks), entries, options.jobs)
