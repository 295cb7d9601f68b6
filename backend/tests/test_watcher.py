"""Watch session and registry tests."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path

import pytest

from design_sync.sync.hub import NotificationHub, Subscriber
from design_sync.sync.watcher import SessionState, WatchRegistry

pytestmark = pytest.mark.anyio


def _events(client: Subscriber) -> list[tuple[str, str]]:
    out = []
    for frame in client.drain():
        payload = json.loads(frame[len("data: ") : -2])
        out.append((payload["data"]["type"], payload["data"]["file"]))
    return out


@pytest.fixture
async def registry(anyio_backend):
    reg = WatchRegistry(NotificationHub(), discovery_interval=60.0, file_poll_interval=60.0)
    yield reg
    reg.stop_all()


async def test_acquire_is_idempotent(tmp_path: Path, registry: WatchRegistry) -> None:
    first = registry.acquire(tmp_path)
    second = registry.acquire(tmp_path.resolve())
    assert first is second
    assert len(registry) == 1
    assert tmp_path in registry
    assert first.state is SessionState.ACTIVE
    assert first.discovery_task is not None


async def test_initial_pass_watches_existing_files(tmp_path: Path, registry: WatchRegistry) -> None:
    (tmp_path / "a.html").write_text("a", encoding="utf-8")
    (tmp_path / "ignored.txt").write_text("x", encoding="utf-8")
    session = registry.acquire(tmp_path)
    assert {p.name for p in session.watched_paths} == {"a.html"}
    assert session.file_watch(tmp_path.resolve() / "a.html").active


async def test_deletions_before_additions(tmp_path: Path, registry: WatchRegistry) -> None:
    (tmp_path / "old.html").write_text("old", encoding="utf-8")
    session = registry.acquire(tmp_path)
    client = Subscriber()
    registry.hub.subscribe(session, client)

    (tmp_path / "old.html").unlink()
    (tmp_path / "b.svg").write_text("<svg/>", encoding="utf-8")
    (tmp_path / "a.html").write_text("a", encoding="utf-8")
    session.discover()

    assert _events(client) == [("deleted", "old.html"), ("added", "a.html"), ("added", "b.svg")]
    assert {p.name for p in session.watched_paths} == {"a.html", "b.svg"}


async def test_file_watch_reports_modification(tmp_path: Path, registry: WatchRegistry) -> None:
    target = tmp_path / "a.html"
    target.write_text("a", encoding="utf-8")
    session = registry.acquire(tmp_path)
    client = Subscriber()
    registry.hub.subscribe(session, client)

    watch = session.file_watch(target.resolve())
    assert watch.check() is False

    target.write_text("a but longer", encoding="utf-8")
    stat = target.stat()
    os.utime(target, ns=(stat.st_atime_ns, stat.st_mtime_ns + 2_000_000_000))
    assert watch.check() is True
    assert _events(client) == [("modified", "a.html")]


async def test_transient_file_emits_nothing(tmp_path: Path, registry: WatchRegistry) -> None:
    session = registry.acquire(tmp_path)
    client = Subscriber()
    registry.hub.subscribe(session, client)

    (tmp_path / "blink.html").write_text("x", encoding="utf-8")
    (tmp_path / "blink.html").unlink()
    session.discover()
    assert _events(client) == []


async def test_missing_directory_is_noop(tmp_path: Path, registry: WatchRegistry) -> None:
    session = registry.acquire(tmp_path / "absent")
    assert session.discover() == []
    assert session.watched_paths == frozenset()


async def test_no_events_after_stop(tmp_path: Path, registry: WatchRegistry) -> None:
    target = tmp_path / "a.html"
    target.write_text("a", encoding="utf-8")
    session = registry.acquire(tmp_path)
    client = Subscriber()
    registry.hub.subscribe(session, client)
    watch = session.file_watch(target.resolve())

    assert registry.stop(tmp_path) is True
    assert session.state is SessionState.STOPPED
    assert session.discovery_task is None
    assert not watch.active
    assert client.closed
    assert session.subscribers == set()

    (tmp_path / "b.html").write_text("b", encoding="utf-8")
    assert session.discover() == []
    assert registry.stop(tmp_path) is False
    assert await client.receive() is None


async def test_stopped_session_is_replaced(tmp_path: Path, registry: WatchRegistry) -> None:
    first = registry.acquire(tmp_path)
    registry.stop(tmp_path)
    second = registry.acquire(tmp_path)
    assert second is not first
    assert second.state is SessionState.ACTIVE


async def test_stopped_session_cannot_restart(tmp_path: Path, registry: WatchRegistry) -> None:
    session = registry.acquire(tmp_path)
    session.stop()
    with pytest.raises(RuntimeError):
        session.start()


def _replace(target: Path, text: str, bump_mtime: bool = False) -> None:
    """Swap in new content atomically so a poll never sees a half-written file."""
    staging = target.with_suffix(".tmp")
    staging.write_text(text, encoding="utf-8")
    if bump_mtime:
        stat = staging.stat()
        os.utime(staging, ns=(stat.st_atime_ns, stat.st_mtime_ns + 2_000_000_000))
    os.replace(staging, target)


async def _wait_until(predicate, timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.02)


async def test_timers_drive_events_until_stop(tmp_path: Path) -> None:
    registry = WatchRegistry(NotificationHub(), discovery_interval=0.05, file_poll_interval=0.05)
    try:
        session = registry.acquire(tmp_path)
        registry.acquire(tmp_path)
        name = f"discovery:{tmp_path.resolve()}"
        timers = [t for t in asyncio.all_tasks() if t.get_name() == name and not t.done()]
        assert timers == [session.discovery_task]

        client = Subscriber()
        registry.hub.subscribe(session, client)
        target = tmp_path / "a.html"
        _replace(target, "a")
        await _wait_until(lambda: client.pending > 0)
        assert _events(client) == [("added", "a.html")]

        _replace(target, "a, revised", bump_mtime=True)
        await _wait_until(lambda: client.pending > 0)
        assert _events(client) == [("modified", "a.html")]

        timer = session.discovery_task
        registry.stop(tmp_path)
        spy = Subscriber()
        session.subscribers.add(spy)

        (tmp_path / "b.html").write_text("b", encoding="utf-8")
        target.write_text("a, revised again", encoding="utf-8")
        target.unlink()
        await asyncio.sleep(0.3)

        assert timer.done()
        assert spy.pending == 0
        assert client.drain() == []
    finally:
        registry.stop_all()
