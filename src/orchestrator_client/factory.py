"""Factory function for creating orchestrator clients from configuration.

The :func:`create_client` function maps a :class:`WrapperConfig` to the
appropriate :class:`OrchestratorClient` subclass based on the
``orchestrator`` field.
"""

from __future__ import annotations

import logging

from src.orchestrator_client.base import OrchestratorClient
from src.orchestrator_client.standalone import StandaloneOrchestratorClient
from src.server_process.config import WrapperConfig

logger = logging.getLogger(__name__)

# Registry of orchestrator name → client class.  SDK bindings register
# themselves through register_client().
_CLIENT_REGISTRY: dict[str, type[OrchestratorClient]] = {
    "standalone": StandaloneOrchestratorClient,
}


def create_client(config: WrapperConfig) -> OrchestratorClient:
    """Instantiate the correct :class:`OrchestratorClient` for ``config``.

    Classes with a ``from_config`` classmethod are built through it;
    others are called without arguments.

    Parameters
    ----------
    config : WrapperConfig
        Wrapper configuration.  The ``orchestrator`` field selects the
        client class.

    Returns
    -------
    OrchestratorClient
        A constructed (but not yet initialized) client.

    Raises
    ------
    ValueError
        If ``orchestrator`` is not recognised.
    """
    client_cls = _CLIENT_REGISTRY.get(config.orchestrator)
    if client_cls is None:
        raise ValueError(
            f"Unknown orchestrator {config.orchestrator!r}. Available: {sorted(_CLIENT_REGISTRY)}"
        )

    logger.info("Creating %s for %r", client_cls.__name__, config.name)
    from_config = getattr(client_cls, "from_config", None)
    if callable(from_config):
        return from_config(config)
    return client_cls()


def register_client(name: str, client_cls: type[OrchestratorClient]) -> None:
    """Register a client class for a given ``orchestrator`` value.

    Parameters
    ----------
    name : str
        The ``orchestrator`` value that should map to ``client_cls``.
    client_cls : type[OrchestratorClient]
        The client class.
    """
    if not (isinstance(client_cls, type) and issubclass(client_cls, OrchestratorClient)):
        raise TypeError(f"{client_cls!r} is not an OrchestratorClient subclass")
    _CLIENT_REGISTRY[name] = client_cls
    logger.info("Registered orchestrator client %r → %s", name, client_cls.__name__)
