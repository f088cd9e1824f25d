"""Process launcher — runs the game server under a shell and relays its output.

The server command line is embedded in ``<shell> -c "<command>"`` and
started in its own session so a kill reaches both the shell and the
server it launched.  Standard output and standard error are captured
(never inherited) and read line by line on two daemon threads, each
line being handed to a single line handler.
"""

from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
import threading
from collections.abc import Callable
from pathlib import Path
from typing import IO, Optional

from src.server_process.config import DEFAULT_SHELL
from src.server_process.errors import StartupError

logger = logging.getLogger(__name__)

LineHandler = Callable[[str], None]

# How long wait() gives the readers to drain after the child has exited.
# Grandchildren that inherited the pipes can keep them open indefinitely.
_READER_DRAIN_TIMEOUT_S = 5.0


def build_shell_command(command: str, shell: str = DEFAULT_SHELL) -> str:
    """Return the full ``<shell> -c "<command>"`` command line.

    Backslashes and double quotes in ``command`` are escaped so the
    command survives being embedded in the double-quoted ``-c``
    argument unchanged.

    Parameters
    ----------
    command : str
        Server command line, e.g. ``/server/LyraServer.sh -log``.
    shell : str
        Shell executable.

    Returns
    -------
    str
    """
    escaped = command.replace("\\", "\\\\").replace('"', '\\"')
    return f'{shlex.quote(shell)} -c "{escaped}"'


def build_shell_argv(command: str, shell: str = DEFAULT_SHELL) -> list[str]:
    """Split :func:`build_shell_command` into an argument vector."""
    return shlex.split(build_shell_command(command, shell))


class ServerProcess:
    """Handle on the running game-server process.

    Wraps a :class:`subprocess.Popen` and owns the two output reader
    threads.  :meth:`kill` may be called from any thread, any number
    of times.

    Parameters
    ----------
    process : subprocess.Popen
        The spawned shell process (started with ``start_new_session``).
    name : str
        Log prefix.
    line_handler : callable, optional
        Called with every output line (without the trailing newline)
        from either stream.  Readers start immediately.
    """

    def __init__(
        self,
        process: subprocess.Popen,
        name: str = "server",
        line_handler: Optional[LineHandler] = None,
    ) -> None:
        self._process = process
        self.name = name
        self._kill_lock = threading.Lock()
        self._killed = False
        self._readers: list[threading.Thread] = []
        if line_handler is not None:
            self.attach_output(line_handler)

    # -- Properties ----------------------------------------------------

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> Optional[int]:
        """Exit code, or ``None`` while the process is still running."""
        return self._process.poll()

    @property
    def running(self) -> bool:
        return self._process.poll() is None

    # -- Lifecycle -----------------------------------------------------

    def kill(self) -> bool:
        """Kill the server's process group.

        Idempotent: a process that has already exited, or has already
        been killed, is not an error.

        Returns
        -------
        bool
            ``True`` only for the call that delivered the kill signal.
        """
        with self._kill_lock:
            if self._killed:
                logger.debug("[%s] Kill requested again, already killed", self.name)
                return False
            if self._process.poll() is not None:
                logger.debug(
                    "[%s] Kill requested but process already exited (code %s)",
                    self.name,
                    self._process.returncode,
                )
                return False

            pid = self._process.pid
            try:
                os.killpg(os.getpgid(pid), signal.SIGKILL)
            except ProcessLookupError:
                logger.debug("[%s] Process group of PID %d already gone", self.name, pid)
                return False
            except PermissionError:
                logger.warning(
                    "[%s] Cannot signal process group of PID %d, killing shell only",
                    self.name,
                    pid,
                )
                try:
                    self._process.kill()
                except ProcessLookupError:
                    return False

            self._killed = True
            logger.info("[%s] Killed server process (PID %d)", self.name, pid)
            return True

    def wait(self) -> int:
        """Block until the process exits and its output has been relayed.

        Returns
        -------
        int
            The process exit code (negative signal number if killed).
        """
        returncode = self._process.wait()
        for reader in self._readers:
            reader.join(timeout=_READER_DRAIN_TIMEOUT_S)
            if reader.is_alive():
                logger.warning(
                    "[%s] %s still open after exit, not waiting for it",
                    self.name,
                    reader.name,
                )
        logger.info("[%s] Server process exited with code %d", self.name, returncode)
        return returncode

    # -- Output ---------------------------------------------------------

    def attach_output(self, line_handler: LineHandler) -> None:
        """Start relaying both output streams to ``line_handler``.

        Output written before this call is queued in the pipes, not lost.

        Raises
        ------
        RuntimeError
            If output is already attached.
        """
        if self._readers:
            raise RuntimeError(f"[{self.name}] Output is already attached")
        streams = (("stdout", self._process.stdout), ("stderr", self._process.stderr))
        for stream_name, stream in streams:
            if stream is None:
                continue
            reader = threading.Thread(
                target=_read_stream,
                args=(stream, line_handler, self.name, stream_name),
                daemon=True,
                name=f"{self.name}-{stream_name}-reader",
            )
            reader.start()
            self._readers.append(reader)

    def __repr__(self) -> str:
        status = "running" if self.running else f"exited({self._process.returncode})"
        return f"<{type(self).__name__}({self.name!r}, pid={self.pid}, {status})>"


def _read_stream(stream: IO[str], line_handler: LineHandler, name: str, stream_name: str) -> None:
    """Reader thread target: hand every line of ``stream`` to ``line_handler``."""
    try:
        for line in iter(stream.readline, ""):
            try:
                line_handler(line.rstrip("\r\n"))
            except Exception:
                logger.exception("[%s] Line handler failed on %s output", name, stream_name)
    except (OSError, ValueError) as exc:
        logger.debug("[%s] %s reader stopped: %s", name, stream_name, exc)
    finally:
        stream.close()


def launch_server(
    command: str,
    line_handler: Optional[LineHandler] = None,
    *,
    shell: str = DEFAULT_SHELL,
    env_vars: Optional[dict[str, str]] = None,
    cwd: str | Path | None = None,
    name: str = "server",
) -> ServerProcess:
    """Start ``command`` under ``shell`` and relay its output lines.

    Parameters
    ----------
    command : str
        Server command line.  Must not be empty.
    line_handler : callable, optional
        Receives each line of stdout and stderr, interleaved as
        delivered.  If omitted, call
        :meth:`ServerProcess.attach_output` once the handle is stored;
        output is queued in the pipes until then.
    shell : str
        Shell executable (``-c`` is passed to it).
    env_vars : dict[str, str], optional
        Extra environment for the server on top of the wrapper's own.
    cwd : str or Path, optional
        Working directory for the server.
    name : str
        Log prefix.

    Returns
    -------
    ServerProcess

    Raises
    ------
    StartupError
        If ``command`` is empty or the shell cannot be started.
    """
    if not command or not command.strip():
        raise StartupError("Server command line is empty")

    argv = build_shell_argv(command, shell)
    logger.info("[%s] Starting server: %s", name, build_shell_command(command, shell))

    try:
        process = subprocess.Popen(
            argv,
            cwd=str(cwd) if cwd is not None else None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
            env={**os.environ, **(env_vars or {})},
            start_new_session=True,
        )
    except OSError as exc:
        raise StartupError(f"[{name}] Failed to start {argv[0]!r}: {exc}") from exc

    logger.info("[%s] Server process PID: %d", name, process.pid)
    return ServerProcess(process, name=name, line_handler=line_handler)
