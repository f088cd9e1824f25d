"""Exceptions raised by the server process subsystem."""

from __future__ import annotations


class WrapperError(Exception):
    """Base class for errors raised by the wrapper."""


class StartupError(WrapperError):
    """Raised when the game-server process cannot be spawned.

    Covers an empty command line, a missing shell or executable, and
    permission errors.  Always fatal for the wrapper.
    """
