"""Directory scan and manifest diff tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from design_sync.sync.differ import diff_manifest, matches_patterns, scan_assets


def _manifest(files) -> list[dict]:
    return [{"name": f.name, "size": f.size, "modified": f.modified} for f in files]


def test_scan_filters_and_sorts(tmp_path: Path) -> None:
    (tmp_path / "b.html").write_text("bb", encoding="utf-8")
    (tmp_path / "a.SVG").write_text("<svg/>", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("skip", encoding="utf-8")
    (tmp_path / "nested.html").mkdir()

    files = scan_assets(tmp_path)
    assert [f.name for f in files] == ["a.SVG", "b.html"]
    assert files[1].size == 2
    assert isinstance(files[1].modified, int)


def test_scan_missing_directory(tmp_path: Path) -> None:
    assert scan_assets(tmp_path / "nope") == []


def test_matches_patterns_case_insensitive() -> None:
    assert matches_patterns("Logo.SVG", ["*.svg"])
    assert not matches_patterns("logo.png", ["*.svg", "*.html"])


def test_unchanged_directory_has_no_changes(tmp_path: Path) -> None:
    (tmp_path / "a.html").write_text("a", encoding="utf-8")
    live = scan_assets(tmp_path)
    result = diff_manifest(live, _manifest(live))
    assert result.has_changes is False
    assert result.to_dict() == {"hasChanges": False, "changes": []}


def test_added_modified_deleted(tmp_path: Path) -> None:
    (tmp_path / "a.html").write_text("a", encoding="utf-8")
    (tmp_path / "b.html").write_text("b", encoding="utf-8")
    manifest = _manifest(scan_assets(tmp_path))

    (tmp_path / "a.html").write_text("a changed", encoding="utf-8")
    (tmp_path / "b.html").unlink()
    (tmp_path / "c.svg").write_text("<svg/>", encoding="utf-8")

    result = diff_manifest(scan_assets(tmp_path), manifest)
    assert result.has_changes
    assert result.by_type("modified") == ["a.html"]
    assert result.by_type("added") == ["c.svg"]
    assert result.by_type("deleted") == ["b.html"]
    # deletions come after live-file classifications
    assert result.changes[-1].type == "deleted"


def test_modified_by_mtime_only(tmp_path: Path) -> None:
    (tmp_path / "a.html").write_text("a", encoding="utf-8")
    live = scan_assets(tmp_path)
    manifest = _manifest(live)
    manifest[0]["modified"] -= 5000
    assert diff_manifest(live, manifest).by_type("modified") == ["a.html"]


def test_each_name_classified_once(tmp_path: Path) -> None:
    (tmp_path / "a.html").write_text("a", encoding="utf-8")
    live = scan_assets(tmp_path)
    manifest = [
        {"name": "a.html", "size": 999, "modified": 0},
        {"name": "a.html", "size": 1, "modified": 0},
        {"name": "old.html", "size": 1, "modified": 0},
    ]
    result = diff_manifest(live, manifest)
    names = [change.file for change in result.changes]
    assert len(names) == len(set(names))
    assert result.by_type("modified") == ["a.html"]
    assert result.by_type("deleted") == ["old.html"]


@pytest.mark.parametrize(
    "entry",
    [
        "a.html",
        {"name": "a.html", "size": 1},
        {"name": 3, "size": 1, "modified": 0},
        {"name": "a.html", "size": "big", "modified": 0},
    ],
)
def test_bad_manifest_shape(entry) -> None:
    with pytest.raises(ValueError):
        diff_manifest([], [entry])


def test_service_reports_missing_directory(service) -> None:
    service.layout.assets_dir.rmdir()
    result = service.diff_manifest([])
    assert result.error == "No design iterations directory found"
    assert result.has_changes is False
