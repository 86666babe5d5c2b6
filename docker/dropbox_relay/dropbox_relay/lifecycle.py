"""Listener lifecycle: background serving, signal handling, bounded shutdown."""

import signal
import threading
import time
from types import FrameType
from typing import Protocol

import uvicorn
from fastapi import FastAPI

from .utils.logger import logger

SHUTDOWN_GRACE_SECONDS = 5
# uvicorn polls should_exit every 0.1s and pauses 0.1s before draining
SHUTDOWN_JOIN_MARGIN_SECONDS = 0.5
STARTUP_POLL_SECONDS = 0.05
HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ListenerError(RuntimeError):
    """Raised when the HTTP listener stops before shutdown was requested."""


class ShutdownError(RuntimeError):
    """Raised when the listener does not stop within the grace period."""


class ServerProtocol(Protocol):
    should_exit: bool
    started: bool

    def run(self) -> None: ...


def build_server(
    app: FastAPI, host: str, port: int, log_level: str = "info"
) -> uvicorn.Server:
    """Create the uvicorn server for the relay app."""
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=log_level,
        access_log=log_level == "debug",  # Only show access logs in DEBUG mode
        timeout_graceful_shutdown=SHUTDOWN_GRACE_SECONDS,
    )
    return uvicorn.Server(config)


class RelayServer:
    """Runs the HTTP listener on a background thread until a signal arrives.

    The main thread starts the listener, then blocks in
    wait_for_shutdown_signal(). SIGINT/SIGTERM wake it up, and shutdown()
    asks the listener to stop accepting connections, giving in-flight
    requests up to grace_period seconds to finish.

    uvicorn only installs its own signal handlers on the main thread, so the
    listener thread leaves signal handling to this class.
    """

    def __init__(
        self, server: ServerProtocol, grace_period: float = SHUTDOWN_GRACE_SECONDS
    ):
        self.server = server
        self.grace_period = grace_period
        self.received_signal: int | None = None
        self._stop_requested = threading.Event()
        self._thread: threading.Thread | None = None

    def install_signal_handlers(self) -> None:
        for sig in HANDLED_SIGNALS:
            signal.signal(sig, self._handle_signal)

    def _handle_signal(self, signum: int, frame: FrameType | None) -> None:
        self.request_shutdown(signum)

    def request_shutdown(self, signum: int) -> None:
        """Wake the main path; safe to call from a signal handler."""
        if self.received_signal is None:
            self.received_signal = signum
        self._stop_requested.set()

    def start(self) -> bool:
        """
        Start the listener thread and wait until it is accepting connections.

        Returns:
            True once the listener is serving, False if it stopped during startup
        """
        self._thread = threading.Thread(
            target=self._serve, name="relay-listener", daemon=True
        )
        self._thread.start()

        while not self.server.started:
            if not self._thread.is_alive():
                return False
            time.sleep(STARTUP_POLL_SECONDS)
        return True

    def _serve(self) -> None:
        try:
            self.server.run()
        finally:
            # Wakes the main path if the listener dies on its own
            self._stop_requested.set()

    def wait_for_shutdown_signal(self) -> int:
        """
        Block until a termination signal is received.

        Returns:
            The signal number that requested shutdown

        Raises:
            ListenerError: If the listener stopped before any signal arrived.
        """
        self._stop_requested.wait()
        if self.received_signal is None:
            raise ListenerError("HTTP listener stopped before a shutdown signal was received")

        logger.info("Received %s", signal.Signals(self.received_signal).name)
        return self.received_signal

    def shutdown(self) -> None:
        """
        Stop the listener, waiting at most grace_period for in-flight requests.

        Raises:
            ShutdownError: If the listener is still running after the grace period.
        """
        logger.info("Shutting down server...")
        self.server.should_exit = True

        if self._thread is not None:
            self._thread.join(
                timeout=self.grace_period + SHUTDOWN_JOIN_MARGIN_SECONDS
            )
            if self._thread.is_alive():
                raise ShutdownError(
                    f"Server did not stop within {self.grace_period} seconds"
                )

        logger.info("Server stopped")
