"""Directory watch sessions that poll for asset changes."""

from __future__ import annotations

import asyncio
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Sequence

from design_sync.core.config import Settings
from design_sync.core.logging import get_logger, log_context
from design_sync.core.metrics import DISCOVERY_PASSES, WATCH_SESSIONS
from design_sync.models.entities import FileChange
from design_sync.sync.differ import DEFAULT_PATTERNS, scan_assets
from design_sync.sync.hub import NotificationHub, Subscriber

logger = get_logger(__name__)

FILE_CHANGED = "file_changed"


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    STOPPED = "stopped"


class FileWatch:
    """Poll one file and report changes to its size or modification time."""

    def __init__(self, path: Path, interval: float, on_change: Callable[[Path], None]) -> None:
        self.path = path
        self.interval = interval
        self._on_change = on_change
        self._signature = self._read_signature()
        self._task: asyncio.Task[None] | None = None

    def _read_signature(self) -> tuple[int, int] | None:
        try:
            stat = self.path.stat()
        except OSError:
            return None
        return stat.st_size, stat.st_mtime_ns

    def check(self) -> bool:
        """Compare against the last seen signature; fires the callback on change."""
        current = self._read_signature()
        # a vanished file is reported by the discovery pass, not here
        if current is None or current == self._signature:
            return False
        self._signature = current
        self._on_change(self.path)
        return True

    def start(self) -> None:
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._poll(), name=f"file-watch:{self.path.name}")

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.check()

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()


class WatchSession:
    """Watch one asset directory and broadcast ``file_changed`` events.

    Each discovery pass reports vanished files as ``deleted`` before newly
    seen files as ``added``; per-file watches report ``modified``. Once
    stopped, a session emits nothing and cannot be restarted.
    """

    def __init__(
        self,
        directory: Path,
        hub: NotificationHub,
        patterns: Sequence[str] = DEFAULT_PATTERNS,
        discovery_interval: float = 2.0,
        file_poll_interval: float = 1.0,
    ) -> None:
        self.directory = directory
        self.hub = hub
        self.patterns = tuple(patterns)
        self.discovery_interval = discovery_interval
        self.file_poll_interval = file_poll_interval
        self.state = SessionState.UNINITIALIZED
        self.subscribers: set[Subscriber] = set()
        self._watches: dict[Path, FileWatch] = {}
        self._discovery_task: asyncio.Task[None] | None = None

    @property
    def watched_paths(self) -> frozenset[Path]:
        return frozenset(self._watches)

    @property
    def discovery_task(self) -> asyncio.Task[None] | None:
        return self._discovery_task

    def file_watch(self, path: Path) -> FileWatch | None:
        return self._watches.get(path)

    def start(self) -> None:
        if self.state is not SessionState.UNINITIALIZED:
            raise RuntimeError(f"Cannot start a session in state {self.state.value}")
        loop = asyncio.get_running_loop()
        self.state = SessionState.ACTIVE
        with log_context(directory=str(self.directory)):
            self.discover()
            self._discovery_task = loop.create_task(
                self._run_discovery(), name=f"discovery:{self.directory}"
            )
            logger.info("Watching %s", self.directory)

    def discover(self) -> list[FileChange]:
        """Run one discovery pass and broadcast what changed."""
        if self.state is not SessionState.ACTIVE:
            return []
        DISCOVERY_PASSES.inc()
        if not self.directory.is_dir():
            return []
        current = {item.path for item in scan_assets(self.directory, self.patterns)}
        changes: list[FileChange] = []
        for path in sorted(set(self._watches) - current):
            self._watches.pop(path).cancel()
            changes.append(FileChange(file=path.name, type="deleted"))
        for path in sorted(current - set(self._watches)):
            watch = FileWatch(path, self.file_poll_interval, self._on_file_modified)
            watch.start()
            self._watches[path] = watch
            changes.append(FileChange(file=path.name, type="added"))
        for change in changes:
            self._emit(change)
        return changes

    async def _run_discovery(self) -> None:
        while True:
            await asyncio.sleep(self.discovery_interval)
            try:
                self.discover()
            except OSError as exc:
                logger.warning("Discovery pass failed for %s: %s", self.directory, exc)

    def _on_file_modified(self, path: Path) -> None:
        if path in self._watches:
            self._emit(FileChange(file=path.name, type="modified"))

    def _emit(self, change: FileChange) -> None:
        if self.state is not SessionState.ACTIVE:
            return
        logger.debug("%s %s", change.type, change.file)
        self.hub.broadcast(self, FILE_CHANGED, change.to_dict())

    def stop(self) -> None:
        """Cancel every timer and file watch and release subscribers."""
        if self.state is SessionState.STOPPED:
            return
        self.state = SessionState.STOPPED
        if self._discovery_task is not None:
            self._discovery_task.cancel()
            self._discovery_task = None
        for watch in self._watches.values():
            watch.cancel()
        self._watches.clear()
        self.hub.close_all(self)
        logger.info("Stopped watching %s", self.directory)


class WatchRegistry:
    """Owns at most one :class:`WatchSession` per directory."""

    def __init__(
        self,
        hub: NotificationHub | None = None,
        patterns: Sequence[str] = DEFAULT_PATTERNS,
        discovery_interval: float = 2.0,
        file_poll_interval: float = 1.0,
    ) -> None:
        self.hub = hub or NotificationHub()
        self.patterns = tuple(patterns)
        self.discovery_interval = discovery_interval
        self.file_poll_interval = file_poll_interval
        self._sessions: dict[Path, WatchSession] = {}

    @classmethod
    def from_settings(cls, settings: Settings, hub: NotificationHub | None = None) -> "WatchRegistry":
        return cls(
            hub=hub,
            patterns=settings.asset_patterns,
            discovery_interval=settings.discovery_interval,
            file_poll_interval=settings.file_poll_interval,
        )

    @staticmethod
    def _key(directory: Path) -> Path:
        return directory.expanduser().resolve()

    def acquire(self, directory: Path) -> WatchSession:
        """Return the session for ``directory``, starting one if needed."""
        key = self._key(directory)
        session = self._sessions.get(key)
        if session is not None:
            return session
        session = WatchSession(
            key,
            self.hub,
            patterns=self.patterns,
            discovery_interval=self.discovery_interval,
            file_poll_interval=self.file_poll_interval,
        )
        session.start()
        self._sessions[key] = session
        WATCH_SESSIONS.inc()
        return session

    def get(self, directory: Path) -> WatchSession | None:
        return self._sessions.get(self._key(directory))

    def stop(self, directory: Path) -> bool:
        session = self._sessions.pop(self._key(directory), None)
        if session is None:
            return False
        session.stop()
        WATCH_SESSIONS.dec()
        return True

    def stop_all(self) -> None:
        for directory in list(self._sessions):
            self.stop(directory)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, directory: object) -> bool:
        return isinstance(directory, Path) and self._key(directory) in self._sessions

    def __iter__(self) -> Iterator[WatchSession]:
        return iter(list(self._sessions.values()))


__all__ = ["FileWatch", "SessionState", "WatchRegistry", "WatchSession", "FILE_CHANGED"]
