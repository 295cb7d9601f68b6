"""Change detection, retention and live-sync components."""

from .cleanup import CleanupEngine
from .differ import diff_manifest, scan_assets
from .hub import NotificationHub, Subscriber, format_event
from .server import LiveSyncServer, LiveSyncStartError
from .watcher import SessionState, WatchRegistry, WatchSession

__all__ = [
    "CleanupEngine",
    "diff_manifest",
    "scan_assets",
    "NotificationHub",
    "Subscriber",
    "format_event",
    "LiveSyncServer",
    "LiveSyncStartError",
    "SessionState",
    "WatchRegistry",
    "WatchSession",
]
