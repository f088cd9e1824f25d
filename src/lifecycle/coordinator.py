"""Lifecycle coordinator — the wrapper's top-level control.

Wires the orchestrator's lifecycle callbacks to the server process,
launches the server with a :class:`LogRelay` attached to its output,
and blocks until the server exits.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from datetime import datetime
from typing import Optional

from src.lifecycle.boundary import callback_boundary, log_message
from src.lifecycle.relay import LogRelay
from src.orchestrator_client.base import OrchestratorClient
from src.server_process.cell import ProcessCell
from src.server_process.config import WrapperConfig
from src.server_process.launcher import launch_server

logger = logging.getLogger(__name__)


def _hard_exit(code: int) -> None:
    """Flush logging and end the whole process, from any thread."""
    logging.shutdown()
    os._exit(code)


def exit_code_from_returncode(returncode: int) -> int:
    """Map a child return code to a wrapper exit code.

    Children killed by a signal report ``-signum``; those are mapped to
    the shell convention ``128 + signum``.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode


class LifecycleCoordinator:
    """Bridge between the orchestrator client and the game server.

    The coordinator exclusively owns the server process handle (in a
    :class:`ProcessCell`) and hands bound methods to the client as its
    shutdown, health and maintenance callbacks.

    Parameters
    ----------
    config : WrapperConfig
        What to launch and how to detect readiness.
    client : OrchestratorClient
        The control plane binding.
    launcher : callable
        Process launcher with the :func:`launch_server` signature;
        the returned handle must provide ``attach_output`` and ``wait``.
    exit_func : callable, optional
        Called with the exit code on shutdown.  Defaults to flushing
        logging and calling :func:`os._exit`.
    """

    def __init__(
        self,
        config: WrapperConfig,
        client: OrchestratorClient,
        *,
        launcher: Callable = launch_server,
        exit_func: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.config = config
        self.client = client
        self.process_cell = ProcessCell()
        self.relay = LogRelay(
            client,
            self.process_cell,
            marker=config.readiness_marker,
            once=config.readiness_once,
        )
        self._launcher = launcher
        self._exit = exit_func or _hard_exit

    # -- Startup -------------------------------------------------------

    def run(self) -> int:
        """Run the wrapper until the server exits.

        Returns
        -------
        int
            The server's exit code (``128 + signum`` if it was killed).

        Raises
        ------
        StartupError
            If the server cannot be spawned.
        """
        self.log_message(f"GSDK Wrapper for {self.config.name}")
        self.log_message("Initializing GSDK")
        self.initialize_client()

        self.log_message("Starting Server Process")
        process = self._launcher(
            self.config.server_command,
            shell=self.config.shell,
            env_vars=self.config.env_vars,
            cwd=self.config.working_dir,
            name=self.config.name,
        )
        # The handle must be visible before the relay can see a marker line.
        self.process_cell.set(process)
        process.attach_output(self.relay)

        return exit_code_from_returncode(process.wait())

    def initialize_client(self) -> None:
        """Register the lifecycle callbacks, initialize, and signal ready."""
        self.client.register_shutdown_callback(self.on_shutdown)
        self.client.register_health_callback(self.on_health_check)
        self.client.register_maintenance_callback(self.on_maintenance_scheduled)
        self.client.initialize()
        self.client.signal_ready()

    # -- Orchestrator callbacks ----------------------------------------

    @callback_boundary()
    def on_shutdown(self) -> None:
        """Kill the server (if any) and exit the wrapper with code 0."""
        try:
            logger.info("Shutdown requested by orchestrator")
            self.process_cell.kill()
        finally:
            self._exit(0)

    @callback_boundary(default=False)
    def on_health_check(self) -> bool:
        """Report healthy once the server process handle exists.

        This is a liveness proxy: the OS-level process state is not
        consulted.
        """
        return self.process_cell.has_process

    @callback_boundary()
    def on_maintenance_scheduled(self, when: datetime) -> None:
        self.log_message(f"Maintenance Scheduled at: {when}")

    # -- Logging -------------------------------------------------------

    def log_message(self, message: str) -> None:
        """Log ``message`` locally and forward it to the orchestrator."""
        log_message(self.client, message, logger)
