"""Internal dataclasses representing persisted and computed entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Literal, Mapping

from design_sync.utils.time import parse_iso, to_iso

ChangeType = Literal["added", "modified", "deleted"]


@dataclass(slots=True)
class AssetRecord:
    file_name: str
    file_path: str
    created_at: datetime | None
    file_size: int
    design_type: str | None = None
    prompt: str | None = None
    framework: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "fileName": self.file_name,
            "filePath": self.file_path,
            "createdAt": to_iso(self.created_at) if self.created_at else None,
            "fileSize": self.file_size,
            "designType": self.design_type,
            "prompt": self.prompt,
            "framework": self.framework,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "AssetRecord":
        """Build a record from its persisted form; unknown keys are ignored."""
        file_name = raw.get("fileName")
        if not isinstance(file_name, str) or not file_name:
            raise ValueError("record is missing fileName")
        size = raw.get("fileSize")
        return cls(
            file_name=file_name,
            file_path=str(raw.get("filePath") or ""),
            created_at=parse_iso(raw.get("createdAt")),
            file_size=int(size) if isinstance(size, (int, float)) else 0,
            design_type=raw.get("designType"),
            prompt=raw.get("prompt"),
            framework=raw.get("framework"),
        )


@dataclass(slots=True)
class CleanupSettings:
    max_age_days: int = 30
    max_count: int = 50
    enabled: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"maxAgeDays": self.max_age_days, "maxCount": self.max_count, "enabled": self.enabled}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "CleanupSettings":
        """Merge stored values over defaults.

        Raises ``ValueError`` when a stored limit is not a non-negative
        integer or ``enabled`` is not a boolean.
        """
        defaults = cls()
        max_age_days = raw.get("maxAgeDays", defaults.max_age_days)
        max_count = raw.get("maxCount", defaults.max_count)
        enabled = raw.get("enabled", defaults.enabled)
        for key, value in (("maxAgeDays", max_age_days), ("maxCount", max_count)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"{key} must be a non-negative integer, got {value!r}")
        if not isinstance(enabled, bool):
            raise ValueError(f"enabled must be a boolean, got {enabled!r}")
        return cls(max_age_days=max_age_days, max_count=max_count, enabled=enabled)


@dataclass(slots=True, frozen=True)
class ManifestEntry:
    name: str
    size: int
    modified: float

    @classmethod
    def coerce(cls, value: Any) -> "ManifestEntry":
        if isinstance(value, ManifestEntry):
            return value
        if not isinstance(value, Mapping):
            raise ValueError(f"manifest entry must be a mapping, got {type(value).__name__}")
        missing = [key for key in ("name", "size", "modified") if key not in value]
        if missing:
            raise ValueError(f"manifest entry missing {', '.join(missing)}")
        name, size, modified = value["name"], value["size"], value["modified"]
        if not isinstance(name, str):
            raise ValueError("manifest entry name must be a string")
        if isinstance(size, bool) or not isinstance(size, (int, float)):
            raise ValueError(f"manifest entry {name!r} has a non-numeric size")
        if isinstance(modified, bool) or not isinstance(modified, (int, float)):
            raise ValueError(f"manifest entry {name!r} has a non-numeric modified time")
        return cls(name=name, size=int(size), modified=modified)


@dataclass(slots=True, frozen=True)
class LiveFile:
    """Current on-disk state of one asset file."""

    name: str
    path: Path
    size: int
    modified: int


@dataclass(slots=True, frozen=True)
class FileChange:
    file: str
    type: ChangeType

    def to_dict(self) -> dict[str, str]:
        return {"file": self.file, "type": self.type}


@dataclass(slots=True)
class DiffResult:
    changes: list[FileChange] = field(default_factory=list)
    error: str | None = None

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)

    def by_type(self, change_type: ChangeType) -> list[str]:
        return [change.file for change in self.changes if change.type == change_type]

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "hasChanges": self.has_changes,
            "changes": [change.to_dict() for change in self.changes],
        }
        if self.error:
            payload["error"] = self.error
        return payload


@dataclass(slots=True)
class CleanupResult:
    deleted: list[str] = field(default_factory=list)
    kept: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    max_age_days: int = 30
    max_count: int = 50
    dry_run: bool = False


@dataclass(slots=True, frozen=True)
class SaveStatus:
    """Outcome of a best-effort persistence write."""

    ok: bool
    path: Path
    error: str | None = None


@dataclass(slots=True, frozen=True)
class DeleteResult:
    file_name: str
    deleted: bool
    detail: str


__all__ = [
    "AssetRecord",
    "ChangeType",
    "CleanupResult",
    "CleanupSettings",
    "DeleteResult",
    "DiffResult",
    "FileChange",
    "LiveFile",
    "ManifestEntry",
    "SaveStatus",
]
