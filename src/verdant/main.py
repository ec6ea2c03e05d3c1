"""
Verdant entry point.

Parses the command line, configures logging and starts one of three processes:

* ``api``    - the session API that owns gardens and agents
* ``bridge`` - the bridge server fronting the Claude CLI
* ``cli``    - the session API in a background thread plus an interactive terminal client
"""

import argparse
import logging
import os
import sys
import threading
from pathlib import Path
from typing import (
    Callable,
    Dict,
)

from verdant.config import settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _init_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stdout,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _check_turn_log() -> None:
    """Create the turn log directory up front; exit if it cannot be written."""
    if not settings.TURN_LOG_PATH:
        return
    log_dir = Path(settings.TURN_LOG_PATH).parent
    log_dir.mkdir(parents=True, exist_ok=True)
    if not os.access(log_dir, os.W_OK):
        logger.error("Turn log directory is not writable: %s", log_dir)
        sys.exit(1)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the Verdant garden agent")
    parser.add_argument(
        "--mode",
        choices=["api", "bridge", "cli"],
        type=str.lower,
        default="api",
        help="Process to start (default: api)",
    )
    parser.add_argument(
        "--backend",
        choices=["hosted", "bridge"],
        type=str.lower,
        default=None,
        help="Model backend used by new turns (default from env: BACKEND)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Listen port (default from env: API_PORT, or BRIDGE_PORT in bridge mode)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        type=str.lower,
        default=settings.LOG_LEVEL,
        help="Logging level (default from env: %(default)s)",
    )
    return parser


# ---------------------------------------------------------------------------
# Launchers
# ---------------------------------------------------------------------------
def _launch_api(port: int) -> None:
    from verdant.api.app import run_api  # pylint: disable=import-outside-toplevel

    run_api(host="0.0.0.0", port=port, reload=settings.DEBUG)


def _launch_bridge(port: int) -> None:
    from verdant.bridge.server import run_bridge  # pylint: disable=import-outside-toplevel

    run_bridge(host="0.0.0.0", port=port)


def _launch_cli(port: int) -> None:
    from verdant.api.app import run_api  # pylint: disable=import-outside-toplevel
    from verdant.client.cli import run_cli  # pylint: disable=import-outside-toplevel

    settings.API_PORT = port
    server = threading.Thread(
        target=run_api,
        kwargs={"host": "127.0.0.1", "port": port, "reload": False, "log_level": "warning"},
        name="verdant-api",
        daemon=True,
    )
    server.start()
    run_cli()


LAUNCHERS: Dict[str, Callable[[int], None]] = {
    "api": _launch_api,
    "bridge": _launch_bridge,
    "cli": _launch_cli,
}


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main(argv: list[str] | None = None) -> None:
    """Entry point of the ``verdant`` console script."""
    args = _build_parser().parse_args(sys.argv[1:] if argv is None else argv)

    settings.LOG_LEVEL = args.log_level
    if args.backend:
        settings.BACKEND = args.backend

    _init_logging(settings.LOG_LEVEL)
    _check_turn_log()

    port = args.port or (settings.BRIDGE_PORT if args.mode == "bridge" else settings.API_PORT)
    logger.info(
        "Starting Verdant [%s mode, backend=%s, port=%d]", args.mode, settings.BACKEND, port
    )
    logger.debug("Settings: %s", settings.model_dump())

    LAUNCHERS[args.mode](port)


if __name__ == "__main__":
    main()
