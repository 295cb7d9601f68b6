"""Retention policy evaluation over the metadata store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

from design_sync.core.logging import get_logger
from design_sync.core.metrics import CLEANUP_DELETED
from design_sync.models.entities import AssetRecord, CleanupResult, CleanupSettings
from design_sync.store.metadata import MetadataStore, SettingsStore
from design_sync.utils.time import utc_now

logger = get_logger(__name__)

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


class CleanupEngine:
    """Select and delete assets that exceed the age or count limits.

    An asset is removed when it is older than ``max_age_days`` or when it
    sits at position ``max_count`` or later in newest-first order. Not safe
    to run concurrently against the same workspace.
    """

    def __init__(
        self,
        metadata: MetadataStore,
        settings: SettingsStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.metadata = metadata
        self.settings = settings
        self._clock = clock

    def cleanup(
        self,
        max_age_days: int | None = None,
        max_count: int | None = None,
        dry_run: bool = False,
    ) -> CleanupResult:
        policy = self._load_policy()
        age_limit = policy.max_age_days if max_age_days is None else max_age_days
        count_limit = policy.max_count if max_count is None else max_count
        if age_limit < 0 or count_limit < 0:
            raise ValueError("max_age_days and max_count must be non-negative")

        records = sorted(self.metadata.reconcile(), key=_created_key, reverse=True)
        cutoff = self._clock() - timedelta(days=age_limit)
        result = CleanupResult(max_age_days=age_limit, max_count=count_limit, dry_run=dry_run)

        for index, record in enumerate(records):
            expired = record.created_at is not None and record.created_at < cutoff
            if index < count_limit and not expired:
                result.kept.append(record.file_name)
                continue
            if dry_run:
                result.deleted.append(record.file_name)
                continue
            try:
                self._delete(record)
            except OSError as exc:
                logger.warning("Failed to delete %s: %s", record.file_name, exc)
                result.errors.append(f"Failed to delete {record.file_name}: {exc}")
                continue
            result.deleted.append(record.file_name)

        if not dry_run and result.deleted:
            CLEANUP_DELETED.inc(len(result.deleted))
        logger.info(
            "Cleanup finished",
            extra={
                "ctx_deleted": len(result.deleted),
                "ctx_kept": len(result.kept),
                "ctx_errors": len(result.errors),
                "ctx_dry_run": dry_run,
            },
        )
        return result

    def _load_policy(self) -> CleanupSettings:
        try:
            return self.settings.load()
        except OSError as exc:
            logger.warning("Could not load cleanup settings (%s); using defaults.", exc)
            return CleanupSettings()

    def _delete(self, record: AssetRecord) -> None:
        path = self.metadata.layout.asset_path(record.file_name)
        path.unlink(missing_ok=True)
        self.metadata.remove(record.file_name)


def _created_key(record: AssetRecord) -> datetime:
    return record.created_at or _EPOCH


__all__ = ["CleanupEngine"]
