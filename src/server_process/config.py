"""Wrapper configuration data structures.

A :class:`WrapperConfig` describes one wrapper run: which server command
to launch and under which shell, which log marker signals readiness, and
which orchestrator client to bridge to.

Configs can be loaded from YAML files via :func:`load_wrapper_config`.
String values in YAML configs (including the values of nested mappings
such as ``orchestrator_settings``) support environment variable
expansion using ``$VAR``, ``${VAR}`` or ``${VAR:-default}`` syntax, and
``~`` is expanded in ``working_dir``.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

# Default search path for wrapper config YAML files.
_CONFIGS_DIR = Path(__file__).resolve().parent.parent.parent / "configs" / "wrapper"

# Pattern matching $VAR or ${VAR} for environment variable expansion.
_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")

DEFAULT_SERVER_COMMAND = "/server/LyraServer.sh -log -nogsdk"
DEFAULT_SHELL = "/bin/bash"
READINESS_MARKER = "Engine is initialized"


@dataclass
class WrapperConfig:
    """Declarative description of a wrapped game server.

    Parameters
    ----------
    name : str
        Human-readable identifier used as a log prefix.
    server_command : str
        Command line run inside ``shell -c``.  Must not be empty.
    shell : str
        Shell executable used to run ``server_command``.
    working_dir : str or Path, optional
        Working directory for the server process.  ``None`` inherits
        the wrapper's working directory.
    env_vars : dict[str, str]
        Extra environment variables for the server process.
    readiness_marker : str
        Substring of a server log line that signals the engine has
        finished initializing.
    readiness_once : bool
        If ``True`` (default), only the first marker line triggers the
        readiness branch.
    orchestrator : str
        Which orchestrator client to create (see
        :func:`src.orchestrator_client.create_client`).
    orchestrator_settings : dict[str, str]
        Configuration map served by the standalone client.
    ready_for_players : bool
        Answer the standalone client gives to the readiness query.
    heartbeat_interval_s : float
        Seconds between health polls in the standalone client.
        ``0`` disables the heartbeat thread.
    """

    name: str = "game-server"
    server_command: str = DEFAULT_SERVER_COMMAND
    shell: str = DEFAULT_SHELL
    working_dir: Optional[str | Path] = None
    env_vars: dict[str, str] = field(default_factory=dict)

    # Readiness detection
    readiness_marker: str = READINESS_MARKER
    readiness_once: bool = True

    # Orchestrator bridge
    orchestrator: str = "standalone"
    orchestrator_settings: dict[str, str] = field(default_factory=dict)
    ready_for_players: bool = True
    heartbeat_interval_s: float = 0.0

    def __post_init__(self) -> None:
        if self.working_dir is not None:
            self.working_dir = Path(os.path.expanduser(_expand_vars(str(self.working_dir))))
        self.env_vars = {str(k): str(v) for k, v in self.env_vars.items()}
        self.orchestrator_settings = {
            str(k): "" if v is None else str(v) for k, v in self.orchestrator_settings.items()
        }
        if not self.readiness_marker:
            raise ValueError("readiness_marker must not be empty")
        if self.heartbeat_interval_s < 0:
            raise ValueError(
                f"heartbeat_interval_s must be >= 0, got {self.heartbeat_interval_s}"
            )


def _expand_vars(value: str) -> str:
    """Expand ``$VAR`` and ``${VAR}`` references in a string.

    Undefined variables are left as-is (no error).

    Parameters
    ----------
    value : str
        String potentially containing environment variable references.

    Returns
    -------
    str
        String with known variables expanded.
    """

    def _replace(match: re.Match) -> str:
        braced = match.group(1)  # From ${...}
        bare = match.group(2)  # From $VAR
        original: str = match.group(0) or ""

        if braced is not None:
            # Support ${VAR:-default} syntax.
            if ":-" in braced:
                var_name, default = braced.split(":-", 1)
                return os.environ.get(var_name, default)
            return os.environ.get(braced, original)

        return os.environ.get(bare or "", original)

    return _ENV_VAR_RE.sub(_replace, value)


def _expand_vars_recursive(data: dict) -> dict:
    """Expand environment variables in all string values of *data*.

    Nested mappings are expanded as well; other values pass through.

    Parameters
    ----------
    data : dict
        Raw YAML dict whose string values may contain ``$VAR`` or
        ``${VAR}`` references.

    Returns
    -------
    dict
        A new dict with all string values expanded.
    """
    expanded: dict = {}
    for key, value in data.items():
        if isinstance(value, str):
            expanded[key] = _expand_vars(value)
        elif isinstance(value, dict):
            expanded[key] = _expand_vars_recursive(value)
        else:
            expanded[key] = value
    return expanded


def load_wrapper_config(
    name: str,
    configs_dir: str | Path | None = None,
) -> WrapperConfig:
    """Load a :class:`WrapperConfig` from a YAML file.

    Searches ``configs_dir`` (default ``configs/wrapper/``) for a file
    named ``<name>.yaml``.

    Parameters
    ----------
    name : str
        Config identifier matching the YAML filename (without extension).
    configs_dir : str or Path, optional
        Override the default config directory.

    Returns
    -------
    WrapperConfig

    Raises
    ------
    FileNotFoundError
        If no YAML file is found for ``name``.
    ValueError
        If the YAML is not a mapping or contains unknown or invalid fields.
    """
    search_dir = Path(configs_dir) if configs_dir else _CONFIGS_DIR
    config_path = search_dir / f"{name}.yaml"

    if not config_path.exists():
        raise FileNotFoundError(
            f"No wrapper config found at {config_path}. "
            f"Available configs: {[p.stem for p in search_dir.glob('*.yaml')]}"
        )

    logger.info("Loading wrapper config from %s", config_path)
    with open(config_path, "r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)

    if not isinstance(raw, dict):
        raise ValueError(
            f"Expected a YAML mapping in {config_path}, got {type(raw).__name__}"
        )

    raw = _expand_vars_recursive(raw)

    valid_fields = {f.name for f in dataclasses.fields(WrapperConfig)}
    unknown = set(raw) - valid_fields
    if unknown:
        raise ValueError(
            f"Unknown fields in {config_path}: {sorted(unknown)}. "
            f"Valid fields: {sorted(valid_fields)}"
        )

    try:
        return WrapperConfig(**raw)
    except (TypeError, AttributeError) as exc:
        raise ValueError(f"Invalid config in {config_path}: {exc}") from exc


def config_with_overrides(config: WrapperConfig, **overrides: Any) -> WrapperConfig:
    """Return a copy of ``config`` with the non-``None`` ``overrides`` applied."""
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    return dataclasses.replace(config, **changes)
