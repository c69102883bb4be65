"""Tests for the engine subprocess wrapper."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from leakgate.engine.locator import EngineHandle
from leakgate.engine.runner import EngineInvocationError, EngineRunner, RunResult


@pytest.fixture
def runner() -> EngineRunner:
    return EngineRunner(EngineHandle(path=Path("/opt/bin/trufflehog"), source="system"), timeout=5)


class TestEngineRunner:
    """Tests for EngineRunner."""

    def test_build_args_appends_output_flags(self, runner: EngineRunner):
        assert runner.build_args(["filesystem", "config.py"]) == [
            "/opt/bin/trufflehog",
            "filesystem",
            "config.py",
            "--json",
            "--no-update",
        ]

    @patch("subprocess.run")
    def test_run_captures_output(self, mock_run: MagicMock, runner: EngineRunner):
        mock_run.return_value = MagicMock(returncode=0, stdout=b'{"Raw": "x"}\n', stderr=b"")

        result = runner.run(["filesystem", "."], cwd="/repo")

        assert result == RunResult(
            args=runner.build_args(["filesystem", "."]),
            returncode=0,
            stdout='{"Raw": "x"}\n',
            stderr="",
        )
        assert result.ok
        kwargs = mock_run.call_args.kwargs
        assert kwargs["timeout"] == 5
        assert kwargs["cwd"] == "/repo"
        assert kwargs["input"] is None

    @patch("subprocess.run")
    def test_stdin_is_piped(self, mock_run: MagicMock, runner: EngineRunner):
        mock_run.return_value = MagicMock(returncode=0, stdout=b"", stderr=b"")

        runner.run(["git", "file:///dev/stdin"], stdin=b"+secret\n")

        assert mock_run.call_args.kwargs["input"] == b"+secret\n"

    @patch("subprocess.run")
    def test_non_zero_exit_is_returned(self, mock_run: MagicMock, runner: EngineRunner):
        mock_run.return_value = MagicMock(returncode=183, stdout=b"", stderr=b"bad flag\n")

        result = runner.run(["filesystem", "."])

        assert result.returncode == 183
        assert not result.ok
        assert result.stderr == "bad flag\n"

    @patch("subprocess.run")
    def test_invalid_utf8_is_replaced(self, mock_run: MagicMock, runner: EngineRunner):
        mock_run.return_value = MagicMock(returncode=0, stdout=b"\xff\xfe", stderr=b"")

        assert "�" in runner.run(["filesystem", "."]).stdout

    @patch("subprocess.run")
    def test_timeout_raises(self, mock_run: MagicMock, runner: EngineRunner):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="trufflehog", timeout=5)

        with pytest.raises(EngineInvocationError, match="timed out after 5s"):
            runner.run(["filesystem", "."])

    @patch("subprocess.run")
    def test_launch_failure_raises(self, mock_run: MagicMock, runner: EngineRunner):
        mock_run.side_effect = PermissionError("not executable")

        with pytest.raises(EngineInvocationError, match="Could not start"):
            runner.run(["filesystem", "."])
