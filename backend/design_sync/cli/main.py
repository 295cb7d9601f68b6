"""CLI entrypoint for Design Sync."""

from __future__ import annotations

import asyncio
import json
import os
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import requests
import typer

from design_sync.core.config import get_settings
from design_sync.core.logging import configure_logging
from design_sync.service import DesignSyncService
from design_sync.sync.server import LiveSyncStartError

app = typer.Typer(name="dsync", help="Design Sync command-line interface")

DEFAULT_HOST = "http://127.0.0.1:3000"

WorkspaceOption = typer.Option(None, "--workspace", "-w", help="Project root holding the superdesign folder")


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("DSYNC_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _service(workspace: Optional[Path]) -> DesignSyncService:
    base = workspace.expanduser() if workspace else None
    return DesignSyncService(get_settings(), base_path=base)


def _echo(payload: object) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


@app.command("list")
def list_designs(workspace: Optional[Path] = WorkspaceOption) -> None:
    """List tracked designs after reconciling with disk."""
    records = _service(workspace).list_assets()
    _echo([record.to_dict() for record in records])


@app.command()
def delete(
    file_name: str = typer.Argument(..., help="Design file name inside design_iterations"),
    workspace: Optional[Path] = WorkspaceOption,
) -> None:
    """Delete one design file and its metadata."""
    try:
        result = _service(workspace).delete_asset(file_name)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2)
    if not result.deleted:
        typer.echo(result.detail, err=True)
        raise typer.Exit(code=1)
    typer.echo(result.detail)


@app.command()
def cleanup(
    max_age_days: Optional[int] = typer.Option(None, "--max-age-days", min=0, help="Override the age limit"),
    max_count: Optional[int] = typer.Option(None, "--max-count", min=0, help="Override the count limit"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report without deleting"),
    workspace: Optional[Path] = WorkspaceOption,
) -> None:
    """Apply the retention policy to the design directory."""
    result = _service(workspace).cleanup(max_age_days=max_age_days, max_count=max_count, dry_run=dry_run)
    _echo(asdict(result))
    if result.errors:
        raise typer.Exit(code=1)


@app.command()
def check(
    manifest: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of {name, size, modified}"),
    workspace: Optional[Path] = WorkspaceOption,
) -> None:
    """Compare a saved manifest with the current design directory."""
    try:
        entries = json.loads(manifest.read_text(encoding="utf-8"))
        result = _service(workspace).diff_manifest(entries)
    except (json.JSONDecodeError, TypeError, ValueError) as exc:
        typer.echo(f"Invalid manifest: {exc}", err=True)
        raise typer.Exit(code=2)
    _echo(result.to_dict())


@app.command()
def settings(
    max_age_days: Optional[int] = typer.Option(None, "--max-age-days", min=0),
    max_count: Optional[int] = typer.Option(None, "--max-count", min=0),
    enabled: Optional[bool] = typer.Option(None, "--enabled/--disabled", help="Toggle automatic cleanup"),
    workspace: Optional[Path] = WorkspaceOption,
) -> None:
    """Show or update the persisted cleanup settings."""
    service = _service(workspace)
    if max_age_days is None and max_count is None and enabled is None:
        current = service.get_cleanup_settings()
    else:
        current = service.update_cleanup_settings(max_age_days, max_count, enabled)
    _echo(current.to_dict())


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, "--port", help="Port for the live gallery"),
    workspace: Optional[Path] = WorkspaceOption,
) -> None:
    """Serve the live gallery until interrupted."""
    configure_logging()
    service = _service(workspace)
    try:
        asyncio.run(_serve(service, port))
    except LiveSyncStartError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        typer.echo("Stopped")


async def _serve(service: DesignSyncService, port: Optional[int]) -> None:
    url = await service.start_live_sync(port=port)
    typer.echo(f"Live gallery at {url}")
    server = service.live_server()
    try:
        if server is not None:
            await server.wait()
    finally:
        await service.shutdown()


@app.command()
def health(
    host: Optional[str] = typer.Option(None, "--host", help="Override live server host"),
) -> None:
    """Check whether a live gallery server is reachable."""
    url = f"{_resolve_host(host)}/health"
    try:
        resp = requests.get(url, timeout=5)
    except requests.RequestException as exc:
        typer.echo(f"Live server unreachable at {url}: {exc}", err=True)
        raise typer.Exit(code=1)
    if not resp.ok:
        typer.echo(f"Request failed ({resp.status_code}): {resp.text}", err=True)
        raise typer.Exit(code=1)
    _echo(resp.json())


if __name__ == "__main__":
    app()
