"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from design_sync.service import DesignSyncService
from design_sync.sync.watcher import WatchRegistry


def get_service(request: Request) -> DesignSyncService:
    return request.app.state.service


def get_registry(request: Request) -> WatchRegistry:
    return get_service(request).registry


__all__ = ["get_service", "get_registry"]
