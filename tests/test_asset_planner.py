"""Tests covering discovery and asset planning."""

import hashlib
import os
from pathlib import Path

import pytest

from edgeplan.assets import AssetPlanner, AssetReadError, DirectoryScanner, HashComputer
from edgeplan.assets.rules import IMMUTABLE, NO_CACHE
from edgeplan.config import ConfigurationError, FileRule
from edgeplan.config.models import AssetOptions


def _site(root: Path) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "index.html").write_text("<h1>hello</h1>", encoding="utf-8")
    (root / "app.js").write_text("console.log('hi')", encoding="utf-8")
    (root / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 16)
    return root


def test_directory_scanner_lists_hidden_and_nested_files_sorted(tmp_path: Path) -> None:
    (tmp_path / "b").mkdir()
    (tmp_path / "b" / "z.txt").write_text("z", encoding="utf-8")
    (tmp_path / "a-b").mkdir()
    (tmp_path / "a-b" / "x.txt").write_text("x", encoding="utf-8")
    (tmp_path / ".well-known").mkdir()
    (tmp_path / ".well-known" / "site-association-json").write_text("{}", encoding="utf-8")
    (tmp_path / "empty").mkdir()

    found = DirectoryScanner().scan(tmp_path)

    keys = [item.relative_key for item in found]
    assert keys == sorted(keys)
    assert keys == [".well-known/site-association-json", "a-b/x.txt", "b/z.txt"]
    assert found[1].size_bytes == 1


def test_directory_scanner_follows_symlinks(tmp_path: Path) -> None:
    root = tmp_path / "out"
    root.mkdir()
    shared = tmp_path / "shared"
    shared.mkdir()
    (shared / "data.json").write_text("{}", encoding="utf-8")
    (shared / "loop").symlink_to(shared, target_is_directory=True)
    (root / "linked").symlink_to(shared, target_is_directory=True)
    (root / "alias.json").symlink_to(shared / "data.json")
    (root / "dangling.txt").symlink_to(tmp_path / "missing.txt")

    keys = [item.relative_key for item in DirectoryScanner().scan(root)]

    assert keys == ["alias.json", "linked/data.json"]


def test_directory_scanner_rejects_missing_root(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        DirectoryScanner().scan(tmp_path / "dist")

    afile = tmp_path / "file.txt"
    afile.write_text("x", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        DirectoryScanner().scan(afile)


def test_plan_with_default_rulebook(tmp_path: Path) -> None:
    root = _site(tmp_path / "dist")

    plan = AssetPlanner().plan(root)

    assert plan.keys() == ["app.js", "index.html", "logo.png"]
    records = {record.relative_key: record for record in plan.records}
    assert records["index.html"].cache_control == NO_CACHE
    assert records["index.html"].content_type == "text/html;charset=utf-8"
    assert records["app.js"].cache_control == IMMUTABLE
    assert records["app.js"].content_type == "text/javascript;charset=utf-8"
    assert records["logo.png"].cache_control == NO_CACHE
    assert records["logo.png"].content_type == "image/png"
    assert records["logo.png"].source_path == root / "logo.png"
    expected = hashlib.sha256((root / "logo.png").read_bytes()).hexdigest()
    assert records["logo.png"].content_hash == expected


def test_changing_one_file_only_changes_its_hash(tmp_path: Path) -> None:
    root = _site(tmp_path / "dist")
    planner = AssetPlanner(max_workers=2)
    before = {record.relative_key: record for record in planner.plan(root).records}

    data = bytearray((root / "logo.png").read_bytes())
    data[-1] ^= 0xFF
    (root / "logo.png").write_bytes(bytes(data))
    after = {record.relative_key: record for record in planner.plan(root).records}

    assert after["logo.png"].content_hash != before["logo.png"].content_hash
    assert after["index.html"] == before["index.html"]
    assert after["app.js"] == before["app.js"]


def test_plan_is_deterministic_and_covers_every_file(tmp_path: Path) -> None:
    root = tmp_path / "dist"
    for index in range(40):
        target = root / f"dir{index % 5}" / f"file{index}.txt"
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(f"content {index}", encoding="utf-8")

    first = AssetPlanner(max_workers=4).plan(root)
    second = AssetPlanner(max_workers=1).plan(root)

    assert len(first.records) == 40
    assert len(set(first.keys())) == 40
    assert first.records == second.records


def test_user_rules_and_content_type_override(tmp_path: Path) -> None:
    root = _site(tmp_path / "dist")
    (root / "downloads").mkdir()
    (root / "downloads" / "bundle.bin").write_bytes(b"PK\x03\x04")
    options = AssetOptions(
        text_encoding="none",
        file_options=[
            FileRule(files="**/*.png", cache_control="max-age=600"),
            FileRule(
                files="downloads/**",
                cache_control="private,no-cache",
                content_type="application/zip",
            ),
        ],
    )

    plan = AssetPlanner.from_options(options).plan(root)

    assert plan.text_encoding == "none"
    assert plan.get("index.html").content_type == "text/html"
    assert plan.get("logo.png").cache_control == "max-age=600"
    bundle = plan.get("downloads/bundle.bin")
    assert bundle.cache_control == "private,no-cache"
    assert bundle.content_type == "application/zip"
    assert plan.get("missing.txt") is None


def test_plan_of_empty_tree(tmp_path: Path) -> None:
    plan = AssetPlanner().plan(tmp_path)

    assert plan.records == []
    assert plan.root == tmp_path


def test_unreadable_file_aborts_plan(tmp_path: Path) -> None:
    root = _site(tmp_path / "dist")

    class FlakyHasher(HashComputer):
        def compute(self, path: Path) -> str:
            if path.name == "app.js":
                raise AssetReadError(f"Unable to read {path}")
            return super().compute(path)

    planner = AssetPlanner(hasher=FlakyHasher(), max_workers=3)

    with pytest.raises(AssetReadError) as excinfo:
        planner.plan(root)
    assert isinstance(excinfo.value, OSError)
    assert "app.js" in str(excinfo.value)


@pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0, reason="requires non-root POSIX")
def test_permission_denied_raises_asset_read_error(tmp_path: Path) -> None:
    root = _site(tmp_path / "dist")
    secret = root / "secret.txt"
    secret.write_text("x", encoding="utf-8")
    secret.chmod(0)
    try:
        with pytest.raises(AssetReadError):
            AssetPlanner().plan(root)
    finally:
        secret.chmod(0o644)


def test_invalid_worker_count_is_rejected() -> None:
    with pytest.raises(ValueError):
        AssetPlanner(max_workers=0)
