"""Server process subsystem — launch and hold the wrapped game server.

Provides the :class:`WrapperConfig` describing a wrapper run, the
:func:`launch_server` process launcher with its :class:`ServerProcess`
handle, and the :class:`ProcessCell` that owns that handle for the
lifetime of the wrapper.

Typical usage::

    from src.server_process import launch_server, load_wrapper_config

    config = load_wrapper_config("lyra")
    process = launch_server(config.server_command, print, shell=config.shell)
    process.wait()
"""

from src.server_process.cell import ProcessCell
from src.server_process.config import (
    READINESS_MARKER,
    WrapperConfig,
    load_wrapper_config,
)
from src.server_process.errors import StartupError, WrapperError
from src.server_process.launcher import ServerProcess, launch_server

__all__ = [
    "READINESS_MARKER",
    "ProcessCell",
    "ServerProcess",
    "StartupError",
    "WrapperConfig",
    "WrapperError",
    "launch_server",
    "load_wrapper_config",
]
