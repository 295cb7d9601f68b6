"""Directory scanning and manifest comparison."""

from __future__ import annotations

import fnmatch
import os
import stat as stat_mod
from pathlib import Path
from typing import Any, Iterable, Sequence

from watchdog.utils.dirsnapshot import DirectorySnapshot

from design_sync.models.entities import DiffResult, FileChange, LiveFile, ManifestEntry
from design_sync.utils.time import mtime_ms

DEFAULT_PATTERNS = ("*.html", "*.svg")


def matches_patterns(name: str, patterns: Sequence[str]) -> bool:
    lowered = name.lower()
    return any(fnmatch.fnmatch(lowered, pattern.lower()) for pattern in patterns)


def scan_assets(directory: Path, patterns: Sequence[str] = DEFAULT_PATTERNS) -> list[LiveFile]:
    """List asset files directly inside ``directory``, sorted by name.

    A missing directory yields an empty list; files that vanish during the
    scan are skipped.
    """
    if not directory.is_dir():
        return []
    try:
        snapshot = DirectorySnapshot(str(directory), recursive=False)
    except FileNotFoundError:
        return []
    root = os.fspath(directory)
    files: list[LiveFile] = []
    for raw_path in snapshot.paths:
        path = os.fsdecode(raw_path)
        if path == root:
            continue
        info = snapshot.stat_info(raw_path)
        if not stat_mod.S_ISREG(info.st_mode):
            continue
        name = os.path.basename(path)
        if not matches_patterns(name, patterns):
            continue
        files.append(LiveFile(name=name, path=Path(path), size=info.st_size, modified=mtime_ms(info)))
    files.sort(key=lambda item: item.name)
    return files


def diff_manifest(live_files: Iterable[LiveFile], manifest: Iterable[ManifestEntry | Any]) -> DiffResult:
    """Classify live files against a previously observed manifest.

    Live files are checked against the manifest for ``added``/``modified``;
    manifest entries are checked against live files for ``deleted``. Each
    name receives at most one classification.
    """
    entries: dict[str, ManifestEntry] = {}
    for raw in manifest:
        entry = ManifestEntry.coerce(raw)
        entries.setdefault(entry.name, entry)

    live = list(live_files)
    live_names = {item.name for item in live}
    changes: list[FileChange] = []
    for item in live:
        entry = entries.get(item.name)
        if entry is None:
            changes.append(FileChange(file=item.name, type="added"))
        elif item.size != entry.size or item.modified != entry.modified:
            changes.append(FileChange(file=item.name, type="modified"))
    for name in entries:
        if name not in live_names:
            changes.append(FileChange(file=name, type="deleted"))
    return DiffResult(changes=changes)


__all__ = ["DEFAULT_PATTERNS", "diff_manifest", "matches_patterns", "scan_assets"]
