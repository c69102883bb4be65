"""Subprocess wrapper around the TruffleHog CLI.

Every invocation appends the machine-readable output flags (``--json``) and
disables the self-update check (``--no-update``). ``subprocess.run`` drains
both pipes while the engine writes and waits for it to exit, so no engine
process outlives a call.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from leakgate.engine.locator import EngineHandle

logger = logging.getLogger(__name__)

OUTPUT_FLAGS: tuple[str, ...] = ("--json", "--no-update")

# Seconds, per engine invocation.
DEFAULT_TIMEOUT = 300


class EngineInvocationError(Exception):
    """The engine could not be started or did not finish."""

    pass


@dataclass
class RunResult:
    """Captured output of one engine invocation."""

    args: list[str]
    returncode: int
    stdout: str
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class EngineRunner:
    """Invoke a resolved engine with a timeout.

    Example:
        runner = EngineRunner(handle, timeout=120)
        result = runner.run(["filesystem", "config.py"])
    """

    def __init__(self, handle: EngineHandle, timeout: int = DEFAULT_TIMEOUT) -> None:
        self.handle = handle
        self.timeout = timeout

    def build_args(self, args: Sequence[str]) -> list[str]:
        """Return the full command line for ``args``."""
        return [str(self.handle.path), *args, *OUTPUT_FLAGS]

    def run(
        self,
        args: Sequence[str],
        stdin: bytes | None = None,
        cwd: str | None = None,
    ) -> RunResult:
        """
        Run the engine and capture its output.

        Parameters:
            args: Engine sub-command and arguments (output flags are added).
            stdin: Bytes piped to the engine's standard input, if any.
            cwd: Working directory for the engine.

        Returns:
            RunResult with decoded stdout/stderr. A non-zero exit code is
            returned, not raised; callers decide what it means.

        Raises:
            EngineInvocationError: If the engine cannot be launched or times out.
        """
        command = self.build_args(args)
        logger.debug("Running engine: %s", " ".join(command))

        try:
            completed = subprocess.run(  # nosec B603
                command,
                input=stdin,
                capture_output=True,
                timeout=self.timeout,
                cwd=cwd,
            )
        except subprocess.TimeoutExpired as e:
            raise EngineInvocationError(
                f"{self.handle.path.name} timed out after {self.timeout}s"
            ) from e
        except OSError as e:
            raise EngineInvocationError(f"Could not start {self.handle.path}: {e}") from e

        return RunResult(
            args=command,
            returncode=completed.returncode,
            stdout=completed.stdout.decode("utf-8", errors="replace"),
            stderr=completed.stderr.decode("utf-8", errors="replace"),
        )
