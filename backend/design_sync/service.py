"""Workspace-level operations used by the tool layer, CLI and HTTP API."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

from design_sync.core.config import Settings, get_settings
from design_sync.core.logging import get_logger
from design_sync.models.entities import (
    AssetRecord,
    CleanupResult,
    CleanupSettings,
    DeleteResult,
    DiffResult,
    ManifestEntry,
)
from design_sync.store.metadata import MetadataStore, SettingsStore
from design_sync.store.workspace import WorkspaceLayout, get_or_create_workspace_layout
from design_sync.sync.cleanup import CleanupEngine
from design_sync.sync.differ import diff_manifest, scan_assets
from design_sync.sync.server import LiveSyncServer
from design_sync.sync.watcher import WatchRegistry

logger = get_logger(__name__)


class DesignSyncService:
    """Coordinate the metadata store, cleanup, diffing and live sync for one workspace."""

    def __init__(
        self,
        settings: Settings | None = None,
        base_path: Path | None = None,
        registry: WatchRegistry | None = None,
        layout: WorkspaceLayout | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.layout = layout or get_or_create_workspace_layout(
            base_path or self.settings.resolve_workspace_path(),
            self.settings.workspace_dir_name,
        )
        self.metadata = MetadataStore(self.layout)
        self.cleanup_settings = SettingsStore(self.layout)
        self.cleanup_engine = CleanupEngine(self.metadata, self.cleanup_settings)
        self.registry = registry or WatchRegistry.from_settings(self.settings)
        self._servers: dict[Path, LiveSyncServer] = {}

    # Layout -----------------------------------------------------------

    def get_or_create_workspace_layout(self, base_path: Path | None = None) -> WorkspaceLayout:
        if base_path is None:
            return get_or_create_workspace_layout(self.layout.root.parent, self.layout.root.name)
        return get_or_create_workspace_layout(base_path, self.settings.workspace_dir_name)

    # Metadata ---------------------------------------------------------

    def upsert_asset(
        self,
        file_name: str,
        design_type: str | None = None,
        prompt: str | None = None,
        framework: str | None = None,
    ) -> AssetRecord | None:
        return self.metadata.upsert(file_name, design_type, prompt, framework)

    def reconcile_assets(self) -> list[AssetRecord]:
        return self.metadata.reconcile()

    def list_assets(self) -> list[AssetRecord]:
        return self.metadata.reconcile()

    def delete_asset(self, file_name: str) -> DeleteResult:
        path = self.layout.asset_path(file_name)
        try:
            path.unlink()
        except FileNotFoundError:
            return DeleteResult(file_name, deleted=False, detail=f"Design file {file_name} does not exist")
        self.metadata.remove(file_name)
        logger.info("Deleted design %s", file_name)
        return DeleteResult(file_name, deleted=True, detail=f"Successfully deleted {file_name}")

    # Retention --------------------------------------------------------

    def get_cleanup_settings(self) -> CleanupSettings:
        return self.cleanup_settings.load()

    def update_cleanup_settings(
        self,
        max_age_days: int | None = None,
        max_count: int | None = None,
        enabled: bool | None = None,
    ) -> CleanupSettings:
        return self.cleanup_settings.update(max_age_days, max_count, enabled)

    def cleanup(
        self,
        max_age_days: int | None = None,
        max_count: int | None = None,
        dry_run: bool = False,
    ) -> CleanupResult:
        return self.cleanup_engine.cleanup(max_age_days, max_count, dry_run)

    # Change detection -------------------------------------------------

    def diff_manifest(self, manifest: Iterable[ManifestEntry | dict[str, Any]]) -> DiffResult:
        entries = [ManifestEntry.coerce(item) for item in manifest]
        if not self.layout.assets_dir.is_dir():
            return DiffResult(error="No design iterations directory found")
        live = scan_assets(self.layout.assets_dir, self.settings.asset_patterns)
        return diff_manifest(live, entries)

    # Live sync --------------------------------------------------------

    def _service_for(self, directory: Path | None) -> "DesignSyncService":
        if directory is None:
            return self
        root = directory.expanduser().resolve()
        if root == self.layout.root:
            return self
        layout = get_or_create_workspace_layout(root.parent, root.name)
        return DesignSyncService(self.settings, registry=self.registry, layout=layout)

    async def start_live_sync(self, directory: Path | None = None, port: int | None = None) -> str:
        """Serve the gallery for ``directory`` (a workspace root) and return its URL."""
        from design_sync.app import create_app

        service = self._service_for(directory)
        key = service.layout.root
        existing = self._servers.get(key)
        if existing is not None and existing.running:
            return existing.url
        server = LiveSyncServer(
            create_app(service),
            host=self.settings.live_host,
            port=self.settings.live_port if port is None else port,
            shutdown_timeout=self.settings.shutdown_timeout,
        )
        url = await server.start()
        self._servers[key] = server
        return url

    def live_server(self, directory: Path | None = None) -> LiveSyncServer | None:
        return self._servers.get(self._service_for(directory).layout.root)

    async def stop_live_sync(self, directory: Path | None = None) -> bool:
        service = self._service_for(directory)
        watched = self.registry.stop(service.layout.assets_dir)
        server = self._servers.pop(service.layout.root, None)
        if server is not None:
            await server.stop()
        return watched or server is not None

    async def shutdown(self) -> None:
        for root in list(self._servers):
            await self.stop_live_sync(root)
        self.registry.stop_all()


__all__ = ["DesignSyncService"]
