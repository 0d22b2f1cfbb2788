from __future__ import annotations

from pathlib import Path

import pytest

from mdpublish.assets import scan_assets, sync_assets
from mdpublish.config import PublishOptions
from mdpublish.errors import AssetPolicyError
from mdpublish.writer import PathLocks


def _asset(root: Path, rel: str, data: bytes = b"data") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def test_nested_files_keep_their_relative_path(tmp_path: Path, quiet_options: PublishOptions) -> None:
    assets = tmp_path / "assets"
    _asset(assets, "css/site.css", b"body {}")
    _asset(assets, "img/icons/logo.svg", b"<svg/>")
    out = tmp_path / "site"

    results = sync_assets(assets, out, quiet_options, PathLocks())

    assert [written for written, _ in results] == [True, True]
    assert (out / "css" / "site.css").read_bytes() == b"body {}"
    assert (out / "img" / "icons" / "logo.svg").read_bytes() == b"<svg/>"


def test_hidden_files_are_never_copied(tmp_path: Path, quiet_options: PublishOptions) -> None:
    assets = tmp_path / "assets"
    _asset(assets, ".DS_Store")
    _asset(assets, "img/.hidden.png")
    _asset(assets, "img/shown.png")
    out = tmp_path / "site"

    sync_assets(assets, out, quiet_options, PathLocks())

    assert not (out / ".DS_Store").exists()
    assert not (out / "img" / ".hidden.png").exists()
    assert (out / "img" / "shown.png").exists()


def test_only_entry_names_are_checked(tmp_path: Path) -> None:
    assets = tmp_path / "assets"
    _asset(assets, ".well-known/security.txt")

    entries = scan_assets(assets, tmp_path / "site")

    assert [e.relative_path for e in entries] == [".well-known/security.txt"]
    assert entries[0].destination == tmp_path / "site" / ".well-known" / "security.txt"


def test_scan_order_is_sorted(tmp_path: Path) -> None:
    assets = tmp_path / "assets"
    for rel in ["b.txt", "a/z.txt", "a.txt", "c/d/e.txt"]:
        _asset(assets, rel)

    entries = scan_assets(assets, tmp_path / "site")

    assert [e.relative_path for e in entries] == ["a.txt", "b.txt", "a/z.txt", "c/d/e.txt"]


def test_second_sync_writes_nothing(tmp_path: Path, quiet_options: PublishOptions) -> None:
    assets = tmp_path / "assets"
    _asset(assets, "a.txt")
    _asset(assets, "sub/b.txt")
    out = tmp_path / "site"
    locks = PathLocks()

    first = sync_assets(assets, out, quiet_options, locks)
    second = sync_assets(assets, out, quiet_options, locks)

    assert all(written for written, _ in first)
    assert not any(written for written, _ in second)
    assert [d for _, d in first] == [d for _, d in second]


def test_changed_asset_is_replaced(tmp_path: Path, quiet_options: PublishOptions) -> None:
    assets = tmp_path / "assets"
    src = _asset(assets, "a.txt", b"v1")
    out = tmp_path / "site"
    sync_assets(assets, out, quiet_options, PathLocks())

    src.write_bytes(b"v2")
    ((written, _),) = sync_assets(assets, out, quiet_options, PathLocks())

    assert written
    assert (out / "a.txt").read_bytes() == b"v2"


def test_symlinks_are_fatal(tmp_path: Path, quiet_options: PublishOptions) -> None:
    assets = tmp_path / "assets"
    real = _asset(tmp_path / "elsewhere", "real.txt")
    assets.mkdir()
    (assets / "link.txt").symlink_to(real)

    with pytest.raises(AssetPolicyError):
        sync_assets(assets, tmp_path / "site", quiet_options, PathLocks())


def test_directory_symlinks_are_fatal(tmp_path: Path, quiet_options: PublishOptions) -> None:
    assets = tmp_path / "assets"
    (tmp_path / "elsewhere").mkdir()
    assets.mkdir()
    (assets / "linked").symlink_to(tmp_path / "elsewhere", target_is_directory=True)

    with pytest.raises(AssetPolicyError):
        sync_assets(assets, tmp_path / "site", quiet_options, PathLocks())


def test_missing_asset_root(tmp_path: Path, quiet_options: PublishOptions) -> None:
    with pytest.raises(NotADirectoryError):
        sync_assets(tmp_path / "nope", tmp_path / "site", quiet_options, PathLocks())


def test_pooled_sync_matches_sequential(tmp_path: Path) -> None:
    assets = tmp_path / "assets"
    for i in range(12):
        _asset(assets, f"dir{i % 3}/file{i}.bin", bytes([i]) * 4096)

    sequential = sync_assets(assets, tmp_path / "one", PublishOptions(quiet=True), PathLocks())
    pooled = sync_assets(assets, tmp_path / "many", PublishOptions(quiet=True, jobs=4), PathLocks())

    assert sequential == pooled
    for entry in scan_assets(assets, tmp_path / "many"):
        assert entry.destination.read_bytes() == entry.source.read_bytes()
