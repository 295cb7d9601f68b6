"""Live gallery routes: index snapshot, event stream and asset files."""

from __future__ import annotations

import asyncio
import html
from typing import AsyncIterator, Awaitable, Callable, Sequence

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response, StreamingResponse

from design_sync.api.dependencies import get_registry, get_service
from design_sync.models.entities import LiveFile
from design_sync.service import DesignSyncService
from design_sync.sync.differ import scan_assets
from design_sync.sync.hub import Subscriber
from design_sync.sync.watcher import WatchRegistry, WatchSession

router = APIRouter()

IndexRenderer = Callable[[Sequence[LiveFile]], str]

CONTENT_TYPES = {
    ".html": "text/html",
    ".svg": "image/svg+xml",
}

HEARTBEAT_SECONDS = 15.0


def render_index(files: Sequence[LiveFile]) -> str:
    """Plain listing with a reload-on-change hook."""
    items = "\n".join(
        f'<li><a href="/design_iterations/{html.escape(f.name)}">{html.escape(f.name)}</a> ({f.size} bytes)</li>'
        for f in files
    )
    return (
        "<!DOCTYPE html>\n<html><head><meta charset=\"utf-8\"><title>Design gallery</title></head>\n"
        f"<body><h1>Designs ({len(files)})</h1>\n<ul>\n{items}\n</ul>\n"
        "<script>new EventSource('/events').onmessage = (e) => {"
        " if (JSON.parse(e.data).event === 'file_changed') location.reload(); };</script>\n"
        "</body></html>\n"
    )


async def event_stream(
    session: WatchSession,
    client: Subscriber,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    heartbeat: float = HEARTBEAT_SECONDS,
) -> AsyncIterator[str]:
    """Relay a subscriber's frames until it closes or the peer goes away."""
    try:
        while True:
            try:
                frame = await asyncio.wait_for(client.receive(), timeout=heartbeat)
            except asyncio.TimeoutError:
                if is_disconnected is not None and await is_disconnected():
                    break
                continue
            if frame is None:
                break
            yield frame
    finally:
        session.hub.unsubscribe(session, client)
        client.close()


@router.get("/", response_class=HTMLResponse, summary="Gallery snapshot")
async def gallery_index(request: Request, service: DesignSyncService = Depends(get_service)) -> HTMLResponse:
    files = scan_assets(service.layout.assets_dir, service.settings.asset_patterns)
    renderer: IndexRenderer = getattr(request.app.state, "renderer", None) or render_index
    return HTMLResponse(renderer(files))


@router.get("/events", summary="Live change stream")
async def live_events(
    request: Request,
    service: DesignSyncService = Depends(get_service),
    registry: WatchRegistry = Depends(get_registry),
) -> StreamingResponse:
    session = registry.acquire(service.layout.assets_dir)
    client = Subscriber(max_queue=service.settings.subscriber_queue_size)
    session.hub.subscribe(session, client)
    session.hub.send(client, "connected", {})
    return StreamingResponse(
        event_stream(session, client, request.is_disconnected),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.get("/design_iterations/{file_name}", summary="Serve one design file")
async def design_file(file_name: str, service: DesignSyncService = Depends(get_service)) -> Response:
    try:
        path = service.layout.asset_path(file_name)
        content = path.read_bytes()
    except (ValueError, FileNotFoundError, IsADirectoryError):
        return PlainTextResponse("File not found", status_code=404)
    media_type = CONTENT_TYPES.get(path.suffix.lower(), "text/plain")
    return Response(content=content, media_type=media_type)


__all__ = ["router", "render_index", "event_stream", "IndexRenderer"]
