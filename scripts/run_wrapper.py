#!/usr/bin/env python
"""CLI entry point -- run the game server under the GSDK wrapper.

Launches the configured server command under ``/bin/bash``, relays its
output, and bridges orchestrator lifecycle callbacks to it::

    # Use configs/wrapper/lyra.yaml:
    python scripts/run_wrapper.py --config lyra

    # Any YAML file, overriding the server command:
    python scripts/run_wrapper.py --config /etc/wrapper/server.yaml \\
        --command "/server/MyServer.sh -log"

The exit code is the server's own exit code, 0 when the orchestrator
requested the shutdown, and 1 when the server could not be started.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Parameters
    ----------
    argv : list[str] or None
        Command-line arguments.  If None, uses ``sys.argv[1:]``.

    Returns
    -------
    argparse.Namespace
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="Run a game server under the GSDK wrapper.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="lyra",
        help=(
            "Wrapper config name (file under configs/wrapper/) or path to "
            "a .yaml file.  Default: lyra"
        ),
    )
    parser.add_argument(
        "--command",
        type=str,
        default=None,
        help="Override the server command line from the config",
    )
    parser.add_argument(
        "--orchestrator",
        type=str,
        default=None,
        help="Override the orchestrator client (default: from config)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def _resolve_config_location(value: str) -> tuple[str, Path | None]:
    """Split ``--config`` into a config name and an optional directory."""
    path = Path(value)
    if path.suffix in (".yaml", ".yml"):
        return path.stem, path.parent
    return value, None


def main(argv: list[str] | None = None) -> int:
    """Run the wrapper.

    Parameters
    ----------
    argv : list[str] or None
        Command-line arguments.

    Returns
    -------
    int
        Exit code.
    """
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    from src.lifecycle import LifecycleCoordinator
    from src.orchestrator_client import create_client
    from src.server_process import StartupError, load_wrapper_config
    from src.server_process.config import config_with_overrides

    name, configs_dir = _resolve_config_location(args.config)
    try:
        config = load_wrapper_config(name, configs_dir=configs_dir)
        config = config_with_overrides(
            config,
            server_command=args.command,
            orchestrator=args.orchestrator,
        )
        client = create_client(config)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Invalid wrapper configuration: %s", exc)
        return 1

    coordinator = LifecycleCoordinator(config, client)
    try:
        return coordinator.run()
    except StartupError as exc:
        logger.critical("Server startup failed: %s", exc)
        return 1
    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())
