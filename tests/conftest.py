"""Shared pytest fixtures for the GSDK wrapper test suite.

Provides an in-memory orchestrator client and a scripted process handle
so the relay and coordinator can be exercised without a control plane
or a real game server.  Tests that spawn real processes use
``/bin/bash`` and are skipped where it is unavailable.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Optional

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.orchestrator_client.base import OrchestratorClient
from src.server_process.config import WrapperConfig


class FakeOrchestratorClient(OrchestratorClient):
    """Orchestrator client that records every interaction."""

    def __init__(
        self,
        *,
        ready: bool = True,
        settings: Optional[dict[str, str]] = None,
        session_cookie_key: str = "sessionCookie",
    ) -> None:
        super().__init__()
        self.ready = ready
        self.settings = dict(settings or {})
        self.session_cookie_key = session_cookie_key
        self.calls: list[str] = []
        self.messages: list[str] = []
        self.readiness_queries = 0
        self.config_queries = 0
        self.closed = False

    def initialize(self) -> None:
        self.calls.append("initialize")

    def signal_ready(self) -> None:
        self.calls.append("signal_ready")

    def is_ready_for_players(self) -> bool:
        self.readiness_queries += 1
        return self.ready

    def get_config_settings(self) -> dict[str, str]:
        self.config_queries += 1
        return dict(self.settings)

    def log(self, message: str) -> None:
        self.messages.append(message)

    def close(self) -> None:
        self.closed = True


class FakeServerProcess:
    """Process handle that replays scripted output lines on ``wait()``."""

    def __init__(self, lines: Optional[list[str]] = None, returncode: int = 0) -> None:
        self.lines = list(lines or [])
        self._returncode = returncode
        self.kill_calls = 0
        self.line_handler: Optional[Callable[[str], None]] = None
        self.on_wait: Optional[Callable[[], None]] = None

    def attach_output(self, line_handler: Callable[[str], None]) -> None:
        self.line_handler = line_handler

    def kill(self) -> bool:
        self.kill_calls += 1
        return self.kill_calls == 1

    def wait(self) -> int:
        if self.on_wait is not None:
            self.on_wait()
        if self.line_handler is not None:
            for line in self.lines:
                self.line_handler(line)
        return -9 if self.kill_calls else self._returncode


class FakeLauncher:
    """Launcher stand-in returning a prepared :class:`FakeServerProcess`."""

    def __init__(self, process: FakeServerProcess) -> None:
        self.process = process
        self.calls: list[tuple[str, dict]] = []

    def __call__(self, command: str, **kwargs) -> FakeServerProcess:
        self.calls.append((command, kwargs))
        return self.process


@pytest.fixture
def make_client() -> Callable[..., FakeOrchestratorClient]:
    """Factory for :class:`FakeOrchestratorClient` instances."""
    return FakeOrchestratorClient


@pytest.fixture
def make_process() -> Callable[..., FakeServerProcess]:
    """Factory for :class:`FakeServerProcess` instances."""
    return FakeServerProcess


@pytest.fixture
def make_launcher() -> Callable[[FakeServerProcess], FakeLauncher]:
    return FakeLauncher


@pytest.fixture
def wrapper_config() -> WrapperConfig:
    """A minimal config pointing at a harmless command."""
    return WrapperConfig(name="test-server", server_command="echo serving")


@pytest.fixture
def exit_calls() -> list[int]:
    """Collects exit codes passed to a coordinator's ``exit_func``."""
    return []
