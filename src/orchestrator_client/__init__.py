"""Orchestrator client subsystem — the wrapper's view of the hosting control plane.

The control plane itself (session negotiation, heartbeats, health
transport) lives outside this project.  The wrapper only talks to it
through the narrow :class:`OrchestratorClient` capability interface:
callback registration, readiness signalling and queries, the
configuration map, and log forwarding.

Typical usage::

    from src.orchestrator_client import create_client

    client = create_client(config)
    client.register_shutdown_callback(on_shutdown)
    client.initialize()
    client.signal_ready()
"""

from src.orchestrator_client.base import OrchestratorClient
from src.orchestrator_client.factory import create_client, register_client
from src.orchestrator_client.standalone import StandaloneOrchestratorClient

__all__ = [
    "OrchestratorClient",
    "StandaloneOrchestratorClient",
    "create_client",
    "register_client",
]
