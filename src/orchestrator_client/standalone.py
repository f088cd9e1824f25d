"""Standalone orchestrator client — run the wrapper without a control plane.

Serves the configuration map and readiness answer from the wrapper
config, turns ``SIGTERM`` / ``SIGINT`` into the shutdown callback, and
optionally polls the health callback on a heartbeat thread, logging
whenever the reported health changes.  Nothing is sent over the
network.
"""

from __future__ import annotations

import logging
import signal
import threading
from typing import Optional

from src.orchestrator_client.base import OrchestratorClient
from src.server_process.config import WrapperConfig

logger = logging.getLogger(__name__)

# Messages forwarded through log() land here instead of a control plane.
_forward_logger = logging.getLogger("orchestrator")

_SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class StandaloneOrchestratorClient(OrchestratorClient):
    """Local-mode client backed by a :class:`WrapperConfig`.

    Parameters
    ----------
    settings : dict[str, str], optional
        Configuration map returned by :meth:`get_config_settings`.
    ready_for_players : bool
        Answer returned by :meth:`is_ready_for_players`.
    heartbeat_interval_s : float
        Seconds between health polls; ``0`` disables polling.
    install_signal_handlers : bool
        Route ``SIGTERM`` / ``SIGINT`` to the shutdown callback.  Only
        possible from the main thread; skipped with a warning otherwise.
    """

    def __init__(
        self,
        settings: Optional[dict[str, str]] = None,
        *,
        ready_for_players: bool = True,
        heartbeat_interval_s: float = 0.0,
        install_signal_handlers: bool = True,
    ) -> None:
        super().__init__()
        self._settings = dict(settings or {})
        self._ready_for_players = ready_for_players
        self._heartbeat_interval_s = heartbeat_interval_s
        self._install_signal_handlers = install_signal_handlers
        self._initialized = False
        self._ready_signalled = False
        self._last_health: Optional[bool] = None
        self._stop_event = threading.Event()
        self._heartbeat_thread: Optional[threading.Thread] = None

    @classmethod
    def from_config(cls, config: WrapperConfig) -> StandaloneOrchestratorClient:
        return cls(
            config.orchestrator_settings,
            ready_for_players=config.ready_for_players,
            heartbeat_interval_s=config.heartbeat_interval_s,
        )

    # -- Control plane operations --------------------------------------

    def initialize(self) -> None:
        if self._initialized:
            logger.warning("Standalone orchestrator already initialized")
            return

        if self._install_signal_handlers:
            self._register_signal_handlers()

        if self._heartbeat_interval_s > 0:
            self._heartbeat_thread = threading.Thread(
                target=self._heartbeat_loop,
                daemon=True,
                name="HeartbeatThread",
            )
            self._heartbeat_thread.start()

        self._initialized = True
        logger.info(
            "Standalone orchestrator initialized (%d config settings, heartbeat %s)",
            len(self._settings),
            f"every {self._heartbeat_interval_s:g}s" if self._heartbeat_interval_s > 0 else "off",
        )

    def signal_ready(self) -> None:
        if not self._initialized:
            raise RuntimeError("initialize() must be called before signal_ready()")
        self._ready_signalled = True
        logger.info("Server marked ready for traffic")

    def is_ready_for_players(self) -> bool:
        if not self._ready_signalled:
            logger.warning("Readiness queried before signal_ready()")
        return self._ready_for_players

    def get_config_settings(self) -> dict[str, str]:
        return dict(self._settings)

    def log(self, message: str) -> None:
        _forward_logger.info("%s", message)

    def close(self) -> None:
        """Stop the heartbeat thread."""
        self._stop_event.set()
        if self._heartbeat_thread is not None and self._heartbeat_thread.is_alive():
            self._heartbeat_thread.join(timeout=self._heartbeat_interval_s + 1)

    # -- Internal -------------------------------------------------------

    def _register_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            logger.warning("Not on the main thread, shutdown signals will not be handled")
            return
        for signum in _SHUTDOWN_SIGNALS:
            signal.signal(signum, self._on_signal)

    def _on_signal(self, signum: int, frame) -> None:  # noqa: ANN001
        logger.info("Received %s, requesting shutdown", signal.Signals(signum).name)
        self.notify_shutdown()

    def _heartbeat_loop(self) -> None:
        while not self._stop_event.wait(self._heartbeat_interval_s):
            self.heartbeat()

    def heartbeat(self) -> bool:
        """Poll the health callback once and log changes in the answer."""
        healthy = self.query_health()
        if healthy != self._last_health:
            level = logging.INFO if healthy else logging.WARNING
            logger.log(level, "Server health: %s", "healthy" if healthy else "unhealthy")
            self._last_health = healthy
        return healthy
