"""
Main entry point: the StagingServer orchestrator.

Loads the configuration, serves the staging store over HTTP and, in demo
mode with a configured live page, runs the cleanup sweep on a timer. Handles
graceful shutdown on Ctrl+C.

Usage:
    stagingpage
    python -m stagingpage.main
"""

from __future__ import annotations

import asyncio
import signal
import sys
from pathlib import Path
from typing import List, Optional

import aiohttp
from aiohttp import web

from stagingpage import notifier
from stagingpage.config import load_config
from stagingpage.demo_tracker import EphemeralTracker
from stagingpage.live_client import StatuspageClient
from stagingpage.models import StagingSettings
from stagingpage.router import ResourceRouter
from stagingpage.server import create_app
from stagingpage.store import StateStore
from stagingpage.sweep import SweepScheduler


class StagingServer:
    """
    Top-level orchestrator.

    Owns the shared aiohttp client session, the web app runner and the
    sweep task.
    """

    def __init__(self, settings: StagingSettings) -> None:
        self.settings = settings
        self.store = StateStore(Path(settings.data_dir) / settings.state_file)
        self.tracker = EphemeralTracker(
            Path(settings.tracker_dir) / settings.tracker_file,
            demo_mode=settings.demo_mode,
        )
        self.router = ResourceRouter(self.store, self.tracker)
        self._tasks: List[asyncio.Task] = []
        self._stopped = asyncio.Event()

    async def run(self) -> None:
        """Serve until shutdown() is called."""
        notifier.print_banner(self.settings)

        connector = aiohttp.TCPConnector(limit_per_host=5)
        async with aiohttp.ClientSession(connector=connector) as session:
            live: Optional[StatuspageClient] = None
            if self.settings.live.is_configured:
                live = StatuspageClient(session, self.settings.live)

            app = create_app(self.router, self.settings, live)
            runner = web.AppRunner(app)
            await runner.setup()
            site = web.TCPSite(runner, "0.0.0.0", self.settings.port)
            await site.start()

            if self.settings.demo_mode and live is not None:
                scheduler = SweepScheduler(self.tracker, live, self.settings)
                self._tasks.append(asyncio.create_task(scheduler.start(), name="demo-sweep"))

            try:
                await self._stopped.wait()
            finally:
                for task in self._tasks:
                    task.cancel()
                await asyncio.gather(*self._tasks, return_exceptions=True)
                await runner.cleanup()

    def shutdown(self) -> None:
        self._stopped.set()


def _handle_signals(server: StagingServer, loop: asyncio.AbstractEventLoop) -> None:
    """Register signal handlers for graceful shutdown."""
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda: _do_shutdown(server))
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass


def _do_shutdown(server: StagingServer) -> None:
    notifier.print_shutdown()
    server.shutdown()


async def async_main() -> None:
    settings = load_config()
    notifier.configure_logging(settings.log_level)
    server = StagingServer(settings)
    _handle_signals(server, asyncio.get_running_loop())
    await server.run()


def main() -> None:
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        # Signal handler already printed shutdown message
        sys.exit(0)


if __name__ == "__main__":
    main()
