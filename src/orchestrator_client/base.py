"""Abstract base class for orchestrator clients.

An :class:`OrchestratorClient` is the wrapper's narrow view of the
game-hosting control plane: it takes the three lifecycle callbacks,
announces readiness, answers whether the session was accepted, and
exposes the configuration map the control plane handed out.

Subclasses bind a concrete control plane (an SDK, or the local
:class:`~src.orchestrator_client.standalone.StandaloneOrchestratorClient`).
They decide *when* callbacks fire; the base class stores them and
provides :meth:`notify_shutdown`, :meth:`query_health` and
:meth:`notify_maintenance` to fire them.
"""

from __future__ import annotations

import abc
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Optional

logger = logging.getLogger(__name__)

ShutdownCallback = Callable[[], None]
HealthCallback = Callable[[], bool]
MaintenanceCallback = Callable[[datetime], None]


class OrchestratorClient(abc.ABC):
    """Base class for all orchestrator clients.

    The client lifecycle is:

    1. ``register_*_callback``: hand over the lifecycle handlers
    2. :meth:`initialize`: one-time setup; callbacks may fire afterwards
    3. :meth:`signal_ready`: the server may now receive traffic
    4. :meth:`is_ready_for_players` / :meth:`get_config_settings`:
       synchronous queries, valid after :meth:`signal_ready`
    """

    #: Configuration map key holding the session cookie.
    session_cookie_key: str = "sessionCookie"

    def __init__(self) -> None:
        self._shutdown_callback: Optional[ShutdownCallback] = None
        self._health_callback: Optional[HealthCallback] = None
        self._maintenance_callback: Optional[MaintenanceCallback] = None

    # -- Callback registration -----------------------------------------

    def register_shutdown_callback(self, callback: ShutdownCallback) -> None:
        self._shutdown_callback = callback

    def register_health_callback(self, callback: HealthCallback) -> None:
        self._health_callback = callback

    def register_maintenance_callback(self, callback: MaintenanceCallback) -> None:
        self._maintenance_callback = callback

    # -- Control plane operations --------------------------------------

    @abc.abstractmethod
    def initialize(self) -> None:
        """One-time setup.  Must be called before :meth:`signal_ready`."""

    @abc.abstractmethod
    def signal_ready(self) -> None:
        """Tell the control plane this process may receive traffic."""

    @abc.abstractmethod
    def is_ready_for_players(self) -> bool:
        """Return ``True`` if the control plane accepted the session."""

    @abc.abstractmethod
    def get_config_settings(self) -> dict[str, str]:
        """Return the control plane's configuration map."""

    @abc.abstractmethod
    def log(self, message: str) -> None:
        """Forward a line to the control plane's log channel."""

    def close(self) -> None:
        """Release client resources.  The default does nothing."""

    # -- Callback dispatch ---------------------------------------------

    def notify_shutdown(self) -> None:
        """Invoke the registered shutdown callback, if any."""
        if self._shutdown_callback is None:
            logger.warning("Shutdown requested but no shutdown callback is registered")
            return
        self._shutdown_callback()

    def query_health(self) -> bool:
        """Invoke the registered health callback.

        Returns ``False`` when no health callback is registered.
        """
        if self._health_callback is None:
            return False
        return bool(self._health_callback())

    def notify_maintenance(self, when: datetime) -> None:
        """Invoke the registered maintenance callback, if any."""
        if self._maintenance_callback is None:
            logger.debug("Maintenance at %s ignored, no callback registered", when)
            return
        self._maintenance_callback(when)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"
