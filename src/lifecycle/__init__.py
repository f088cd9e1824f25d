"""Lifecycle module -- bridges orchestrator callbacks to the game server.

Provides ``LifecycleCoordinator`` for the wrapper's startup sequence and
lifecycle callbacks (shutdown, health check, maintenance), ``LogRelay``
for relaying server output and detecting the readiness marker, and
``callback_boundary`` for keeping callback errors out of the
orchestrator's dispatch.
"""

from src.lifecycle.boundary import callback_boundary, log_message
from src.lifecycle.coordinator import LifecycleCoordinator, exit_code_from_returncode
from src.lifecycle.relay import LogRelay, is_readiness_line

__all__ = [
    "LifecycleCoordinator",
    "LogRelay",
    "callback_boundary",
    "exit_code_from_returncode",
    "is_readiness_line",
    "log_message",
]
