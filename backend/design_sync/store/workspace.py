"""Workspace directory layout."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

ASSETS_DIR_NAME = "design_iterations"
SYSTEM_DIR_NAME = "design_system"
METADATA_FILE_NAME = "metadata.json"
SETTINGS_FILE_NAME = "cleanup-settings.json"


@dataclass(slots=True, frozen=True)
class WorkspaceLayout:
    root: Path

    @property
    def assets_dir(self) -> Path:
        return self.root / ASSETS_DIR_NAME

    @property
    def system_dir(self) -> Path:
        return self.root / SYSTEM_DIR_NAME

    @property
    def metadata_path(self) -> Path:
        return self.root / METADATA_FILE_NAME

    @property
    def settings_path(self) -> Path:
        return self.root / SETTINGS_FILE_NAME

    def asset_path(self, file_name: str) -> Path:
        return self.assets_dir / validate_file_name(file_name)


def get_or_create_workspace_layout(base_path: Path, dir_name: str = "superdesign") -> WorkspaceLayout:
    """Ensure the workspace, asset and design-system directories exist."""
    layout = WorkspaceLayout(root=base_path.expanduser().resolve() / dir_name)
    for directory in (layout.root, layout.assets_dir, layout.system_dir):
        directory.mkdir(parents=True, exist_ok=True)
    return layout


def validate_file_name(file_name: str) -> str:
    """Reject anything that is not a plain file name inside the asset directory."""
    if not file_name or file_name in {".", ".."}:
        raise ValueError(f"Invalid asset name: {file_name!r}")
    if "/" in file_name or "\\" in file_name or "\x00" in file_name:
        raise ValueError(f"Invalid asset name: {file_name!r}")
    return file_name


__all__ = ["WorkspaceLayout", "get_or_create_workspace_layout", "validate_file_name"]
