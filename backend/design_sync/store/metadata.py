"""JSON-backed metadata and cleanup settings stores.

Both files are read whole and overwritten whole. Read failures degrade to
empty/default values and write failures are reported through
:class:`SaveStatus`; neither raises to the caller. Concurrent writers are
not coordinated, so callers must serialize mutating operations per
workspace.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

import orjson

from design_sync.core.logging import get_logger
from design_sync.models.entities import AssetRecord, CleanupSettings, SaveStatus
from design_sync.store.workspace import WorkspaceLayout, validate_file_name
from design_sync.utils.time import birth_time

logger = get_logger(__name__)


def _write_json(path: Path, payload: Any) -> SaveStatus:
    try:
        data = orjson.dumps(payload, option=orjson.OPT_INDENT_2)
        path.write_bytes(data)
    except (OSError, TypeError) as exc:
        logger.error("Failed to write %s: %s", path, exc)
        return SaveStatus(ok=False, path=path, error=str(exc))
    return SaveStatus(ok=True, path=path)


def _read_json(path: Path) -> Any:
    """Return parsed JSON or ``None`` when the file is missing or unreadable."""
    if not path.exists():
        return None
    try:
        return orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as exc:
        logger.warning("Could not read %s (%s); using defaults.", path, exc)
        return None


class MetadataStore:
    """Durable mapping from asset file name to :class:`AssetRecord`."""

    def __init__(self, layout: WorkspaceLayout) -> None:
        self.layout = layout

    @property
    def path(self) -> Path:
        return self.layout.metadata_path

    def load(self) -> list[AssetRecord]:
        raw = _read_json(self.path)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Metadata file %s is not a list; ignoring it", self.path)
            return []
        records: list[AssetRecord] = []
        for item in raw:
            if not isinstance(item, dict):
                logger.warning("Skipping malformed metadata entry: %r", item)
                continue
            try:
                record = AssetRecord.from_dict(item)
                validate_file_name(record.file_name)
                records.append(record)
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping malformed metadata entry: %s", exc)
        return records

    def save(self, records: Iterable[AssetRecord]) -> SaveStatus:
        return _write_json(self.path, [record.to_dict() for record in records])

    def upsert(
        self,
        file_name: str,
        design_type: str | None = None,
        prompt: str | None = None,
        framework: str | None = None,
    ) -> AssetRecord | None:
        """Record a freshly generated file; no-op when the file is absent."""
        file_path = self.layout.asset_path(file_name)
        try:
            stat = file_path.stat()
        except FileNotFoundError:
            logger.debug("Not recording %s: file does not exist", file_name)
            return None
        record = AssetRecord(
            file_name=file_name,
            file_path=str(file_path),
            created_at=birth_time(stat),
            file_size=stat.st_size,
            design_type=design_type,
            prompt=prompt,
            framework=framework,
        )
        records = [existing for existing in self.load() if existing.file_name != file_name]
        records.append(record)
        self.save(records)
        return record

    def reconcile(self) -> list[AssetRecord]:
        """Refresh records against the filesystem, dropping vanished files."""
        refreshed: list[AssetRecord] = []
        for record in self.load():
            file_path = self.layout.asset_path(record.file_name)
            try:
                stat = file_path.stat()
            except (FileNotFoundError, NotADirectoryError):
                logger.debug("Pruning metadata for missing file %s", record.file_name)
                continue
            except OSError as exc:
                # only absence prunes a record
                logger.warning("Could not stat %s: %s", file_path, exc)
                refreshed.append(record)
                continue
            record.file_path = str(file_path)
            record.file_size = stat.st_size
            if record.created_at is None:
                record.created_at = birth_time(stat)
            refreshed.append(record)
        self.save(refreshed)
        return refreshed

    def remove(self, file_name: str) -> bool:
        records = self.load()
        remaining = [record for record in records if record.file_name != file_name]
        if len(remaining) == len(records):
            return False
        self.save(remaining)
        return True


class SettingsStore:
    """Per-workspace :class:`CleanupSettings` persisted as JSON."""

    def __init__(self, layout: WorkspaceLayout) -> None:
        self.layout = layout

    @property
    def path(self) -> Path:
        return self.layout.settings_path

    def load(self) -> CleanupSettings:
        if not self.path.exists():
            defaults = CleanupSettings()
            self.save(defaults)
            return defaults
        raw = _read_json(self.path)
        if not isinstance(raw, dict):
            return CleanupSettings()
        try:
            return CleanupSettings.from_dict(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("Invalid cleanup settings in %s (%s); using defaults.", self.path, exc)
            return CleanupSettings()

    def save(self, settings: CleanupSettings) -> SaveStatus:
        return _write_json(self.path, settings.to_dict())

    def update(
        self,
        max_age_days: int | None = None,
        max_count: int | None = None,
        enabled: bool | None = None,
    ) -> CleanupSettings:
        settings = self.load()
        if max_age_days is not None:
            settings.max_age_days = max_age_days
        if max_count is not None:
            settings.max_count = max_count
        if enabled is not None:
            settings.enabled = enabled
        self.save(settings)
        return settings


__all__ = ["MetadataStore", "SettingsStore"]
