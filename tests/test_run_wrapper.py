"""Tests for the scripts/run_wrapper.py CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from unittest import mock

import pytest

requires_bash = pytest.mark.skipif(
    not Path("/bin/bash").exists() or sys.platform == "win32",
    reason="requires /bin/bash",
)


@pytest.fixture(autouse=True)
def _no_signal_handlers():
    """Keep the standalone client from replacing pytest's signal handlers."""
    with mock.patch("src.orchestrator_client.standalone.signal.signal"):
        yield


def _write_config(tmp_path: Path, server_command: str, **extra: str) -> Path:
    lines = [
        "name: cli-test",
        f"server_command: '{server_command}'",
        "orchestrator_settings:",
        "  sessionCookie: cli-cookie",
    ]
    lines.extend(f"{key}: {value}" for key, value in extra.items())
    path = tmp_path / "cli-test.yaml"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


class TestParseArgs:
    def test_defaults(self):
        from scripts.run_wrapper import parse_args

        args = parse_args([])
        assert args.config == "lyra"
        assert args.command is None
        assert args.orchestrator is None
        assert args.verbose is False

    def test_overrides(self):
        from scripts.run_wrapper import parse_args

        args = parse_args(["--config", "x.yaml", "--command", "true", "-v"])
        assert args.config == "x.yaml"
        assert args.command == "true"
        assert args.verbose is True

    def test_config_location(self):
        from scripts.run_wrapper import _resolve_config_location

        assert _resolve_config_location("lyra") == ("lyra", None)
        assert _resolve_config_location("/etc/wrapper/a.yaml") == ("a", Path("/etc/wrapper"))


class TestMain:
    def test_missing_config_returns_1(self, tmp_path: Path):
        from scripts.run_wrapper import main

        assert main(["--config", str(tmp_path / "absent.yaml")]) == 1

    def test_unknown_orchestrator_returns_1(self, tmp_path: Path):
        from scripts.run_wrapper import main

        path = _write_config(tmp_path, "true")
        assert main(["--config", str(path), "--orchestrator", "nope"]) == 1

    def test_invalid_config_returns_1(self, tmp_path: Path):
        from scripts.run_wrapper import main

        path = _write_config(tmp_path, "true", heartbeat_interval_s="-3")
        assert main(["--config", str(path)]) == 1

    @requires_bash
    def test_server_exit_code_propagates(self, tmp_path: Path):
        from scripts.run_wrapper import main

        path = _write_config(tmp_path, "exit 4")
        assert main(["--config", str(path)]) == 4

    @requires_bash
    def test_command_override(self, tmp_path: Path):
        from scripts.run_wrapper import main

        path = _write_config(tmp_path, "exit 4")
        assert main(["--config", str(path), "--command", "exit 0"]) == 0

    @requires_bash
    def test_accepted_session_logs_cookie(self, tmp_path: Path, caplog):
        from scripts.run_wrapper import main

        caplog.set_level(logging.INFO)
        path = _write_config(tmp_path, 'echo "Engine is initialized"')
        assert main(["--config", str(path)]) == 0
        assert any(
            r.getMessage() == "Got Session Cookie: cli-cookie" for r in caplog.records
        )

    @requires_bash
    def test_rejected_session_returns_137(self, tmp_path: Path):
        from scripts.run_wrapper import main

        path = _write_config(
            tmp_path, 'echo "Engine is initialized"; sleep 30', ready_for_players="false"
        )
        assert main(["--config", str(path)]) == 137

    def test_missing_shell_returns_1(self, tmp_path: Path):
        from scripts.run_wrapper import main

        path = _write_config(tmp_path, "true", shell=str(tmp_path / "no-shell"))
        assert main(["--config", str(path)]) == 1

    def test_client_closed_after_run(self, tmp_path: Path):
        from scripts import run_wrapper

        path = _write_config(tmp_path, "true")
        with mock.patch("src.lifecycle.LifecycleCoordinator") as coordinator_cls, \
                mock.patch("src.orchestrator_client.create_client") as create:
            coordinator_cls.return_value.run.return_value = 0
            assert run_wrapper.main(["--config", str(path)]) == 0
        create.return_value.close.assert_called_once_with()
