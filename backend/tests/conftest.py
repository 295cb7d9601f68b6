"""Test fixtures for Design Sync."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset cached settings and environment between tests."""
    for key in list(os.environ):
        if key.startswith("DSYNC_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("DSYNC_CONFIG", str(tmp_path / "missing-config.yaml"))

    from design_sync.core.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def settings():
    from design_sync.core.config import Settings

    return Settings(discovery_interval=60.0, file_poll_interval=60.0)


@pytest.fixture
def service(tmp_path: Path, settings):
    from design_sync.service import DesignSyncService

    return DesignSyncService(settings, base_path=tmp_path)


@pytest.fixture
def layout(service):
    return service.layout


@pytest.fixture(scope="session")
def sample_html() -> str:
    return "<!DOCTYPE html><html><body><h1>Design</h1></body></html>"
