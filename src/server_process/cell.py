"""Thread-safe holder for the single server process handle."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from src.server_process.launcher import ServerProcess

logger = logging.getLogger(__name__)


class ProcessCell:
    """Owns the wrapper's one :class:`ServerProcess` reference.

    The handle is assigned exactly once, by the startup sequence.
    Output readers and orchestrator callbacks only read it or kill
    through it, from any thread.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._process: Optional[ServerProcess] = None

    def set(self, process: ServerProcess) -> None:
        """Store the handle.

        Raises
        ------
        RuntimeError
            If a handle has already been stored.
        """
        with self._lock:
            if self._process is not None:
                raise RuntimeError(
                    f"Server process already set ({self._process!r}); "
                    "only one server process is supported"
                )
            self._process = process

    def get(self) -> Optional[ServerProcess]:
        with self._lock:
            return self._process

    @property
    def has_process(self) -> bool:
        return self.get() is not None

    def kill(self) -> bool:
        """Kill the stored process, if any.

        Returns ``False`` when no handle exists or the process had
        already exited or been killed.
        """
        process = self.get()
        if process is None:
            logger.debug("Kill requested before the server process was created")
            return False
        return process.kill()
