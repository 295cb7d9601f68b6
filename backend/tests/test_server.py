"""Live sync server lifecycle tests."""

from __future__ import annotations

import json
import socket

import httpx
import pytest
from fastapi import FastAPI

from design_sync.sync.server import LiveSyncServer, LiveSyncStartError, bind_socket


async def _next_frame(lines) -> dict:
    async for line in lines:
        if line.startswith("data: "):
            return json.loads(line[len("data: ") :])
    raise AssertionError("event stream ended")


@pytest.mark.anyio
async def test_start_serve_and_stop(service) -> None:
    url = await service.start_live_sync(port=0)
    try:
        assert url.startswith("http://127.0.0.1:")
        assert await service.start_live_sync(port=0) == url

        async with httpx.AsyncClient(base_url=url) as http:
            resp = await http.get("/health")
        assert resp.json() == {"ok": True}
    finally:
        assert await service.stop_live_sync() is True
    assert service.live_server() is None
    assert await service.stop_live_sync() is False


@pytest.mark.anyio
async def test_events_route_streams_changes(service) -> None:
    url = await service.start_live_sync(port=0)
    try:
        assert service.registry.get(service.layout.assets_dir) is None
        async with httpx.AsyncClient(base_url=url, timeout=5) as http:
            async with http.stream("GET", "/events") as resp:
                assert resp.status_code == 200
                assert resp.headers["content-type"].startswith("text/event-stream")
                assert resp.headers["cache-control"] == "no-cache"
                lines = resp.aiter_lines()
                assert await _next_frame(lines) == {"event": "connected", "data": {}}

                session = service.registry.get(service.layout.assets_dir)
                assert session is not None
                assert len(session.subscribers) == 1

                (service.layout.assets_dir / "hero.html").write_text("<h1>hi</h1>", encoding="utf-8")
                session.discover()
                assert await _next_frame(lines) == {
                    "event": "file_changed",
                    "data": {"file": "hero.html", "type": "added"},
                }
    finally:
        await service.stop_live_sync()
    assert service.registry.get(service.layout.assets_dir) is None


@pytest.mark.anyio
async def test_port_conflict_raises(service) -> None:
    blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    blocker.bind(("127.0.0.1", 0))
    blocker.listen(1)
    try:
        port = blocker.getsockname()[1]
        with pytest.raises(LiveSyncStartError):
            await service.start_live_sync(port=port)
        assert service.live_server() is None
    finally:
        blocker.close()


def test_bind_socket_reports_oserror() -> None:
    with pytest.raises(LiveSyncStartError):
        bind_socket("256.0.0.1", 0)


def test_url_uses_literal_host() -> None:
    app = FastAPI()
    assert LiveSyncServer(app, host="127.0.0.1", port=3000).url == "http://127.0.0.1:3000"
    assert LiveSyncServer(app, host="0.0.0.0", port=3000).url == "http://127.0.0.1:3000"
    assert LiveSyncServer(app, host="::1", port=3000).url == "http://[::1]:3000"
    assert LiveSyncServer(app, host="designs.local", port=8080).url == "http://designs.local:8080"
