"""Log relay and readiness detector.

Every line the game server writes (stdout or stderr) passes through a
:class:`LogRelay`, which echoes it to the wrapper log and watches for
the readiness marker.  On the first marker line the relay asks the
orchestrator whether the session was accepted: if so it logs the
session cookie from the orchestrator's configuration map, otherwise it
kills the server.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from src.lifecycle.boundary import log_message
from src.orchestrator_client.base import OrchestratorClient
from src.server_process.cell import ProcessCell
from src.server_process.config import READINESS_MARKER

logger = logging.getLogger(__name__)

# Server output is echoed verbatim on its own logger.
output_logger = logging.getLogger("server.output")


def is_readiness_line(line: Optional[str], marker: str = READINESS_MARKER) -> bool:
    """Return ``True`` if ``line`` contains the readiness ``marker``.

    ``None`` is never a readiness line.
    """
    if line is None:
        return False
    return marker in line


class LogRelay:
    """Line handler relaying server output and detecting readiness.

    Safe to call concurrently from both output reader threads.

    Parameters
    ----------
    client : OrchestratorClient
        Answers the readiness query and supplies the config map.
    process_cell : ProcessCell
        Holds the server process killed on rejection.
    marker : str
        Readiness marker substring.
    once : bool
        If ``True``, only the first marker line runs the readiness
        branch; later ones are relayed as plain output.
    """

    def __init__(
        self,
        client: OrchestratorClient,
        process_cell: ProcessCell,
        *,
        marker: str = READINESS_MARKER,
        once: bool = True,
    ) -> None:
        self.client = client
        self.process_cell = process_cell
        self.marker = marker
        self.once = once
        self._lock = threading.Lock()
        self._readiness_handled = False

    @property
    def readiness_handled(self) -> bool:
        return self._readiness_handled

    def __call__(self, line: Optional[str]) -> None:
        self.relay(line)

    def relay(self, line: Optional[str]) -> None:
        """Echo ``line`` and run the readiness branch if it carries the marker.

        ``None`` is ignored entirely; an empty string is echoed as an
        empty message.
        """
        if line is None:
            return

        output_logger.info("%s", line)

        if not is_readiness_line(line, self.marker):
            return
        if not self._claim_readiness():
            logger.debug("Repeated readiness marker ignored: %r", line)
            return

        try:
            self._on_server_ready()
        except Exception:
            logger.exception("Readiness handling failed for line %r", line)

    def _claim_readiness(self) -> bool:
        with self._lock:
            if self.once and self._readiness_handled:
                return False
            self._readiness_handled = True
            return True

    def _on_server_ready(self) -> None:
        if self.client.is_ready_for_players():
            settings = self.client.get_config_settings()
            session_cookie = settings.get(self.client.session_cookie_key)
            if session_cookie is not None:
                log_message(self.client, f"Got Session Cookie: {session_cookie}", logger)
        else:
            log_message(self.client, "Server Terminated", logger)
            self.process_cell.kill()
