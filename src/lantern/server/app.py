# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""Starlette application for the liveness page.

Serves a static page (``index.html`` from the static directory) and a
``/health`` endpoint reporting the connection supervisor's state. Runs
under uvicorn as a background task so it never blocks the supervisor.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Callable
from pathlib import Path
from typing import Any

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles

from ..core.config import BotSettings

logger = logging.getLogger(__name__)

StatusProvider = Callable[[], dict[str, Any]]

FALLBACK_PAGE = """<!doctype html>
<html><head><meta charset="utf-8"><title>{name}</title></head>
<body><h1>{name} is running</h1></body></html>
"""

# Supervisor states that count as healthy for /health
HEALTHY_STATES = {"idle", "connecting", "open", "closed"}


def create_app(settings: BotSettings, status_provider: StatusProvider | None = None) -> Starlette:
    """Build the liveness application.

    Args:
        settings: Bot settings (static directory, bot name).
        status_provider: Returns supervisor stats for ``/health``.
    """

    async def health_endpoint(request: Request) -> JSONResponse:
        """Health check endpoint."""
        health_data: dict[str, Any] = {"status": "healthy", "bot": settings.bot_name}
        if status_provider is not None:
            try:
                stats = status_provider()
            except Exception as e:  # Intentionally broad: health check should report all errors
                health_data["status"] = "degraded"
                health_data["error"] = str(e)
            else:
                health_data["supervisor_state"] = stats.get("state")
                health_data["generation"] = stats.get("generation")
                health_data["connect_attempts"] = stats.get("connect_attempts")
                health_data["uptime_seconds"] = round(stats.get("uptime_seconds", 0.0), 1)
                if stats.get("state") not in HEALTHY_STATES:
                    health_data["status"] = "unhealthy"

        status_code = 200 if health_data["status"] == "healthy" else 503
        return JSONResponse(health_data, status_code=status_code)

    async def fallback_index(request: Request) -> HTMLResponse:
        return HTMLResponse(FALLBACK_PAGE.format(name=settings.bot_name))

    routes: list[Any] = [Route("/health", health_endpoint, methods=["GET"])]

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        routes.append(Mount("/", app=StaticFiles(directory=static_dir, html=True), name="static"))
    else:
        logger.info(f"Static directory {static_dir} not found; serving built-in page")
        routes.append(Route("/", fallback_index, methods=["GET"]))

    return Starlette(routes=routes)


class LivenessServer:
    """uvicorn server for the liveness app, run as a background task.

    The listening socket is bound here rather than by uvicorn, which exits
    the process when it cannot bind. A port clash only disables the page.
    """

    def __init__(self, settings: BotSettings, status_provider: StatusProvider | None = None):
        self.host = settings.host
        self.port = settings.port
        self.app = create_app(settings, status_provider)
        self._server: Any = None
        self._task: asyncio.Task | None = None

    def bind(self) -> socket.socket:
        """Bind the listening socket.

        Raises:
            OSError: If the address cannot be bound.
        """
        family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
        except OSError:
            sock.close()
            raise
        sock.set_inheritable(True)
        return sock

    async def start(self) -> None:
        """Serve until stopped. Startup failures are logged, never raised."""
        import uvicorn

        try:
            sock = self.bind()
        except OSError as e:
            logger.error(f"Liveness server disabled: cannot bind {self.host}:{self.port}: {e}")
            return

        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            log_level="warning",
        )
        self._server = uvicorn.Server(config)
        logger.info(f"Server is running on port {sock.getsockname()[1]}")
        try:
            await self._server.serve(sockets=[sock])
        except SystemExit as e:
            # uvicorn calls sys.exit() on startup failures
            logger.error(f"Liveness server failed to start (exit status {e.code})")
        finally:
            sock.close()

    def start_background(self) -> asyncio.Task:
        """Start the server in the background; the bot never waits on it."""
        self._task = asyncio.create_task(self.start(), name="lantern-liveness")
        self._task.add_done_callback(self._on_done)
        return self._task

    async def stop(self) -> None:
        if self._server:
            self._server.should_exit = True
        if self._task is not None:
            try:
                await asyncio.wait_for(self._task, timeout=5.0)
            except (asyncio.TimeoutError, asyncio.CancelledError):
                self._task.cancel()
            except Exception as e:
                logger.debug(f"Liveness server exited with error: {e}")

    @staticmethod
    def _on_done(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Liveness server stopped: {exc}")
