"""Helpers shared by the relay and the coordinator at the orchestrator seam."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any, Optional, TypeVar

from src.orchestrator_client.base import OrchestratorClient

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def callback_boundary(default: Any = None) -> Callable[[F], F]:
    """Decorate an orchestrator callback so it never raises.

    Any :class:`Exception` raised by the wrapped function is logged
    with its traceback and ``default`` is returned instead.
    ``SystemExit`` and other non-``Exception`` errors pass through.

    Parameters
    ----------
    default : Any
        Value returned when the callback fails.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except Exception:
                logger.exception(
                    "Orchestrator callback %s failed, returning %r",
                    func.__qualname__,
                    default,
                )
                return default

        return wrapper  # type: ignore[return-value]

    return decorator


def log_message(
    client: Optional[OrchestratorClient],
    message: str,
    log: logging.Logger = logger,
) -> None:
    """Write ``message`` to the wrapper log and forward it to the orchestrator.

    A failure to forward is logged, never raised.
    """
    log.info("%s", message)
    if client is None:
        return
    try:
        client.log(message)
    except Exception:
        log.warning("Failed to forward message to orchestrator: %r", message, exc_info=True)
