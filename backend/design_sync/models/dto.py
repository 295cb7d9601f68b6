"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from design_sync.models.entities import AssetRecord, CleanupResult, DiffResult


class AssetResponse(BaseModel):
    file_name: str
    file_path: str
    created_at: datetime | None
    file_size: int
    design_type: str | None = None
    prompt: str | None = None
    framework: str | None = None

    @classmethod
    def from_record(cls, record: AssetRecord) -> "AssetResponse":
        return cls(
            file_name=record.file_name,
            file_path=record.file_path,
            created_at=record.created_at,
            file_size=record.file_size,
            design_type=record.design_type,
            prompt=record.prompt,
            framework=record.framework,
        )


class DeleteResponse(BaseModel):
    status: Literal["ok"]
    file_name: str
    detail: str


class CleanupRequest(BaseModel):
    max_age_days: int | None = Field(default=None, ge=0, description="Delete designs older than this many days")
    max_count: int | None = Field(default=None, ge=0, description="Keep only this many newest designs")
    dry_run: bool = Field(default=False, description="Report without deleting")


class CleanupResponse(BaseModel):
    deleted: list[str]
    kept: list[str]
    errors: list[str]
    max_age_days: int
    max_count: int
    dry_run: bool

    @classmethod
    def from_result(cls, result: CleanupResult) -> "CleanupResponse":
        return cls(
            deleted=result.deleted,
            kept=result.kept,
            errors=result.errors,
            max_age_days=result.max_age_days,
            max_count=result.max_count,
            dry_run=result.dry_run,
        )


class CleanupSettingsModel(BaseModel):
    max_age_days: int
    max_count: int
    enabled: bool


class CleanupSettingsUpdate(BaseModel):
    max_age_days: int | None = Field(default=None, ge=0)
    max_count: int | None = Field(default=None, ge=0)
    enabled: bool | None = None


class ManifestEntryModel(BaseModel):
    name: str
    size: int
    modified: float


class CheckFilesRequest(BaseModel):
    manifest: list[ManifestEntryModel]


class FileChangeModel(BaseModel):
    file: str
    type: Literal["added", "modified", "deleted"]


class CheckFilesResponse(BaseModel):
    hasChanges: bool
    changes: list[FileChangeModel]
    error: str | None = None

    @classmethod
    def from_result(cls, result: DiffResult) -> "CheckFilesResponse":
        return cls(
            hasChanges=result.has_changes,
            changes=[FileChangeModel(file=c.file, type=c.type) for c in result.changes],
            error=result.error,
        )


__all__ = [
    "AssetResponse",
    "DeleteResponse",
    "CleanupRequest",
    "CleanupResponse",
    "CleanupSettingsModel",
    "CleanupSettingsUpdate",
    "ManifestEntryModel",
    "CheckFilesRequest",
    "CheckFilesResponse",
    "FileChangeModel",
]
