"""Administrative routes for Design Sync."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from design_sync.api.dependencies import get_service
from design_sync.core.metrics import metrics_response
from design_sync.models.dto import (
    AssetResponse,
    CheckFilesRequest,
    CheckFilesResponse,
    CleanupRequest,
    CleanupResponse,
    CleanupSettingsModel,
    CleanupSettingsUpdate,
    DeleteResponse,
)
from design_sync.models.entities import CleanupSettings
from design_sync.service import DesignSyncService

router = APIRouter()


@router.get("/assets", response_model=list[AssetResponse], summary="List tracked designs")
async def list_assets(service: DesignSyncService = Depends(get_service)) -> list[AssetResponse]:
    return [AssetResponse.from_record(record) for record in service.list_assets()]


@router.delete("/assets/{file_name}", response_model=DeleteResponse, summary="Delete a design file")
async def delete_asset(file_name: str, service: DesignSyncService = Depends(get_service)) -> DeleteResponse:
    try:
        result = service.delete_asset(file_name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if not result.deleted:
        raise HTTPException(status_code=404, detail=result.detail)
    return DeleteResponse(status="ok", file_name=result.file_name, detail=result.detail)


@router.post("/cleanup", response_model=CleanupResponse, summary="Apply the retention policy")
async def run_cleanup(
    request: CleanupRequest,
    service: DesignSyncService = Depends(get_service),
) -> CleanupResponse:
    result = service.cleanup(
        max_age_days=request.max_age_days,
        max_count=request.max_count,
        dry_run=request.dry_run,
    )
    return CleanupResponse.from_result(result)


@router.post("/check", response_model=CheckFilesResponse, summary="Compare a manifest with the asset directory")
async def check_files(
    request: CheckFilesRequest,
    service: DesignSyncService = Depends(get_service),
) -> CheckFilesResponse:
    result = service.diff_manifest(entry.model_dump() for entry in request.manifest)
    return CheckFilesResponse.from_result(result)


@router.get("/settings", response_model=CleanupSettingsModel, summary="Current cleanup settings")
async def get_cleanup_settings(service: DesignSyncService = Depends(get_service)) -> CleanupSettingsModel:
    return _settings_model(service.get_cleanup_settings())


@router.patch("/settings", response_model=CleanupSettingsModel, summary="Update cleanup settings")
async def update_cleanup_settings(
    request: CleanupSettingsUpdate,
    service: DesignSyncService = Depends(get_service),
) -> CleanupSettingsModel:
    updated = service.update_cleanup_settings(
        max_age_days=request.max_age_days,
        max_count=request.max_count,
        enabled=request.enabled,
    )
    return _settings_model(updated)


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


def _settings_model(settings: CleanupSettings) -> CleanupSettingsModel:
    return CleanupSettingsModel(
        max_age_days=settings.max_age_days,
        max_count=settings.max_count,
        enabled=settings.enabled,
    )


__all__ = ["router"]
