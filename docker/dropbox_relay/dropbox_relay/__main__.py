"""Main entry point for the Dropbox token relay."""

import argparse
import logging
import os
import sys
from importlib.metadata import version

from . import __version__
from .config import ConfigurationError, load_config
from .lifecycle import ListenerError, RelayServer, ShutdownError, build_server
from .server import create_app
from .utils.logger import logger, set_log_level


def _setup_argument_parser() -> argparse.ArgumentParser:
    """Set up and return the argument parser for the relay."""
    try:
        package_version = version("dropbox-relay")
    except Exception:
        package_version = __version__

    parser = argparse.ArgumentParser(
        description="Dropbox OAuth token relay that keeps the client secret off the browser",
        epilog=(
            "Examples:\n"
            "  dropbox-relay\n"
            "  dropbox-relay --port 8080 --debug\n"
            "  DROPBOX_CLIENT_ID=... DROPBOX_CLIENT_SECRET=... DROPBOX_REDIRECT_URI=... dropbox-relay\n"
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {package_version}",
        help="Show the version and exit",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=3000,
        help="Port to run the relay on. Default is 3000",
    )

    parser.add_argument(
        "--host",
        default="0.0.0.0",  # nosec B104 - Required for containerized service
        help="Host to run the relay on. Default is 0.0.0.0",
    )

    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Logging level. Default is info",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (equivalent to --log-level debug)",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the Dropbox token relay."""
    parser = _setup_argument_parser()
    args = parser.parse_args(argv)

    log_level = "debug" if args.debug else args.log_level

    # Override with environment variables if present
    host = os.getenv("HOST", args.host)
    port = int(os.getenv("PORT", args.port))
    log_level = os.getenv("LOG_LEVEL", log_level).lower()

    try:
        set_log_level(log_level)
    except ValueError as e:
        logger.error("%s", e)
        sys.exit(1)

    try:
        config = load_config()
    except ConfigurationError as e:
        logger.error("Failed to load relay configuration: %s", e)
        sys.exit(1)

    # Keep httpx from logging request lines for token calls
    logging.getLogger("httpx").setLevel(logging.WARNING)

    app = create_app(config)
    relay = RelayServer(build_server(app, host, port, log_level))
    relay.install_signal_handlers()
    if relay.start():
        logger.info("Server running on http://localhost:%d", port)

    try:
        relay.wait_for_shutdown_signal()
        relay.shutdown()
    except (ListenerError, ShutdownError) as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
