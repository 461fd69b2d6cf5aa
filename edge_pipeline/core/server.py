"""
Server lifecycle module.

Runs the application under uvicorn. On SIGINT/SIGTERM the shared
`ShutdownState` is marked as draining (readiness probes start failing),
uvicorn stops accepting connections and waits for in-flight requests,
forcing them closed after the configured grace period.
"""
import signal
from types import FrameType
from typing import Optional

import uvicorn
from fastapi import FastAPI

from .config import Settings, settings
from ..observability.logger import StructuredLogger, get_logger
from ..services.health_service import ShutdownState


class GracefulServer(uvicorn.Server):
    """uvicorn server that reports draining before shutting down"""

    def __init__(self, config: uvicorn.Config, shutdown_state: ShutdownState, logger: StructuredLogger):
        super().__init__(config)
        self.shutdown_state = shutdown_state
        self.logger = logger

    def handle_exit(self, sig: int, frame: Optional[FrameType]) -> None:
        signal_name = signal.Signals(sig).name
        if not self.shutdown_state.draining:
            self.shutdown_state.begin_drain(signal_name)
            self.logger.info({"type": "server", "signal": signal_name}, "Shutting down server...")
        elif self.should_exit and sig == signal.SIGINT:
            self.logger.error(
                {"type": "server", "signal": signal_name},
                "Server did not close gracefully. Forcing exit."
            )
        super().handle_exit(sig, frame)


def run(
    app: FastAPI,
    app_settings: Optional[Settings] = None,
    logger: Optional[StructuredLogger] = None
) -> None:
    """Serve `app` until a termination signal has been handled"""
    app_settings = app_settings or settings
    logger = logger or get_logger()
    config = uvicorn.Config(
        app,
        host=app_settings.host,
        port=app_settings.port,
        timeout_graceful_shutdown=app_settings.shutdown_grace_period,
        log_level=app_settings.resolved_log_level,
    )
    server = GracefulServer(config, shutdown_state=app.state.shutdown, logger=logger)
    server.run()
