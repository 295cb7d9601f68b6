"""Embedded uvicorn server for the live gallery."""

from __future__ import annotations

import asyncio
import socket

import uvicorn
from fastapi import FastAPI

from design_sync.core.logging import get_logger

logger = get_logger(__name__)

_STARTUP_TIMEOUT = 10.0


class LiveSyncStartError(RuntimeError):
    """Raised when the live gallery server cannot start (usually a busy port)."""


def bind_socket(host: str, port: int) -> socket.socket:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
    except OSError as exc:
        sock.close()
        raise LiveSyncStartError(f"Could not bind {host}:{port}: {exc}") from exc
    sock.set_inheritable(True)
    return sock


class LiveSyncServer:
    """Run a FastAPI app on the current event loop.

    The listening socket is bound before uvicorn starts so a port conflict
    surfaces as :class:`LiveSyncStartError` from :meth:`start`.
    """

    def __init__(self, app: FastAPI, host: str = "127.0.0.1", port: int = 3000, shutdown_timeout: int = 5) -> None:
        self.app = app
        self.host = host
        self.port = port
        self.shutdown_timeout = shutdown_timeout
        self._server: uvicorn.Server | None = None
        self._task: asyncio.Task[None] | None = None
        self._bound_port: int | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def url(self) -> str:
        # wildcard binds are reached through loopback
        host = {"0.0.0.0": "127.0.0.1", "::": "::1"}.get(self.host, self.host)
        if ":" in host:
            host = f"[{host}]"
        return f"http://{host}:{self._bound_port or self.port}"

    async def start(self) -> str:
        if self.running:
            return self.url
        sock = bind_socket(self.host, self.port)
        self._bound_port = sock.getsockname()[1]
        config = uvicorn.Config(
            self.app,
            lifespan="off",
            log_config=None,
            access_log=False,
            timeout_graceful_shutdown=self.shutdown_timeout,
        )
        server = uvicorn.Server(config)
        self._server = server
        self._task = asyncio.get_running_loop().create_task(
            server.serve(sockets=[sock]), name=f"live-sync:{self._bound_port}"
        )
        deadline = asyncio.get_running_loop().time() + _STARTUP_TIMEOUT
        while not server.started:
            if self._task.done():
                sock.close()
                self._reset()
                raise LiveSyncStartError(f"Live sync server on port {self.port} exited during startup")
            if asyncio.get_running_loop().time() > deadline:
                await self.stop()
                raise LiveSyncStartError(f"Live sync server on port {self.port} did not start in time")
            await asyncio.sleep(0.01)
        logger.info("Live sync server listening on %s", self.url)
        return self.url

    async def wait(self) -> None:
        """Block until the server exits (e.g. after SIGINT)."""
        if self._task is not None:
            await asyncio.shield(self._task)

    async def stop(self) -> None:
        server, task = self._server, self._task
        if server is None or task is None:
            return
        server.should_exit = True
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=self.shutdown_timeout + 1)
        except asyncio.TimeoutError:
            server.force_exit = True
            await task
        finally:
            self._reset()
        logger.info("Live sync server on port %s stopped", self.port)

    def _reset(self) -> None:
        self._server = None
        self._task = None


__all__ = ["LiveSyncServer", "LiveSyncStartError", "bind_socket"]
