"""
Printer Monitor Service - HTTP API and process lifecycle.

Serves on-demand health snapshots of the configured printer fleet.
Every request polls the devices fresh; nothing is cached or stored.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from aiohttp import web

from . import __version__
from ._types import now_utc
from .config import MonitorConfig, is_log_level
from .health import DevicePoller, poll_fleet, summarize

logger = logging.getLogger(__name__)


class PrinterMonitorService:
    """
    Printer monitor API service.

    Routes:
        GET  /api/health
        GET  /api/printers
        GET  /api/printers/{name}
        POST /api/printers/status
    """

    def __init__(self, config: MonitorConfig, poller: Optional[DevicePoller] = None):
        self.config = config
        self.poller = poller or DevicePoller.from_config(config)
        self._shutdown_event = asyncio.Event()
        self._api_runner: Optional[web.AppRunner] = None

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/api/health", self._handle_health)
        app.router.add_get("/api/printers", self._handle_list_printers)
        app.router.add_get("/api/printers/{name}", self._handle_get_printer)
        app.router.add_post("/api/printers/status", self._handle_batch_status)

        static_dir = self.config.static_dir
        if static_dir is not None and static_dir.is_dir():
            # Files are served from the root; other paths fall back to index.html
            app.router.add_get("/{tail:.*}", self._handle_index)
            logger.info(f"Serving dashboard assets from {static_dir}")

        return app

    async def start(self) -> None:
        """Start the API server and block until stop() is called."""
        logger.info(f"Starting Printer Monitor (monitoring {len(self.config.printers)} printers)")

        self._api_runner = web.AppRunner(self.create_app())
        await self._api_runner.setup()
        site = web.TCPSite(self._api_runner, self.config.api_host, self.config.api_port)
        await site.start()
        logger.info(f"API server started on {self.config.api_host}:{self.config.api_port}")
        logger.info(
            f"Worst-case poll latency per printer: {self.poller.worst_case_seconds():.0f}s"
        )

        await self._shutdown_event.wait()

    async def stop(self) -> None:
        """Stop the API server."""
        logger.info("Shutting down Printer Monitor")
        self._shutdown_event.set()

        if self._api_runner:
            await self._api_runner.cleanup()
            self._api_runner = None

    # -------------------------------------------------------------------------
    # API Handlers
    # -------------------------------------------------------------------------

    async def _handle_health(self, request: web.Request) -> web.Response:
        """Handle GET /api/health."""
        return web.json_response({
            "status": "OK",
            "message": "Printer Monitor is running",
            "timestamp": now_utc().isoformat(),
            "version": __version__,
            "printers": len(self.config.printers),
        })

    async def _handle_list_printers(self, request: web.Request) -> web.Response:
        """Handle GET /api/printers."""
        try:
            logger.info("Fetching status for all printers")
            results = await poll_fleet(self.config.printers, self.poller)
            counts = summarize(results)
            logger.info(f"Retrieved status: {counts['online']}/{counts['count']} printers online")

            return web.json_response({
                "success": True,
                "data": [r.to_dict() for r in results],
                "count": counts["count"],
                "online": counts["online"],
                "offline": counts["offline"],
                "timestamp": now_utc().isoformat(),
            })

        except Exception as e:
            logger.exception("Error fetching printer status")
            return _error_response(str(e), status=500)

    async def _handle_get_printer(self, request: web.Request) -> web.Response:
        """Handle GET /api/printers/{name}."""
        name = request.match_info["name"]
        device = self.config.get_printer(name)
        if device is None:
            return _error_response("Printer not found", status=404)

        try:
            result = await self.poller.poll_device(device)
            return web.json_response({
                "success": True,
                "data": result.to_dict(),
                "timestamp": now_utc().isoformat(),
            })

        except Exception as e:
            logger.exception(f"Error fetching printer {name}")
            return _error_response(str(e), status=500)

    async def _handle_batch_status(self, request: web.Request) -> web.Response:
        """Handle POST /api/printers/status."""
        try:
            data = await request.json() if request.body_exists else {}
        except ValueError:
            return _error_response("Invalid JSON body", status=400)

        try:
            names = data.get("printerNames") if isinstance(data, dict) else None
            devices = self.config.printers
            if isinstance(names, list):
                wanted = set(names)
                devices = [d for d in devices if d.name in wanted]

            logger.info(f"Fetching status for {len(devices)} printers")
            results = await poll_fleet(devices, self.poller)

            return web.json_response({
                "success": True,
                "data": [r.to_dict() for r in results],
                "count": len(results),
                "timestamp": now_utc().isoformat(),
            })

        except Exception as e:
            logger.exception("Error in batch printer check")
            return _error_response(str(e), status=500)

    async def _handle_index(self, request: web.Request) -> web.StreamResponse:
        """Serve a dashboard asset, or the dashboard page for any other non-API path."""
        if request.path.startswith("/api/"):
            return _error_response("Not found", status=404)

        root = self.config.static_dir.resolve()
        tail = request.match_info.get("tail", "")
        if tail:
            asset = (root / tail).resolve()
            if asset.is_relative_to(root) and asset.is_file():
                return web.FileResponse(asset)

        index = root / "index.html"
        if not index.is_file():
            return _error_response("Not found", status=404)
        return web.FileResponse(index)


def _error_response(message: str, status: int) -> web.Response:
    return web.json_response(
        {"success": False, "error": message, "timestamp": now_utc().isoformat()},
        status=status,
    )


def main():
    """Entry point for the printer-monitor service."""
    import argparse

    parser = argparse.ArgumentParser(description="Printer fleet health monitor")
    parser.add_argument("--config", type=str, help="Path to YAML config file")
    parser.add_argument("--host", type=str, help="API host")
    parser.add_argument("--port", type=int, help="API port")
    parser.add_argument("--log-level", type=str, help="Log level (overrides config)")
    args = parser.parse_args()

    if args.log_level and not is_log_level(args.log_level):
        parser.error(f"invalid log level: {args.log_level}")

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, (args.log_level or "INFO").upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # Load configuration
    try:
        if args.config:
            config = MonitorConfig.from_yaml(Path(args.config))
        else:
            config = MonitorConfig.from_env()
    except ValueError as e:
        logger.error(f"Config error: {e}")
        sys.exit(1)

    # Override with CLI args
    if args.host:
        config.api_host = args.host
    if args.port:
        config.api_port = args.port
    if args.log_level:
        config.log_level = args.log_level

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Config error: {error}")
        sys.exit(1)

    logging.getLogger().setLevel(config.log_level.upper())

    service = PrinterMonitorService(config)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def signal_handler():
        logger.info("Received shutdown signal")
        asyncio.ensure_future(service.stop())

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, signal_handler)

    try:
        loop.run_until_complete(service.start())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        loop.run_until_complete(service.stop())
        loop.close()


if __name__ == "__main__":
    main()
