"""The three scan strategies, cheapest first.

- PerFileScan: one ``trufflehog filesystem <file>`` per staged file, so a
  finding points at an exact file.
- VerifiedSinceCommitScan: the whole working tree, changes since HEAD,
  verified secrets only. Catches what needs live verification or crosses
  file boundaries.
- DiffStreamScan: the staged diff piped into ``trufflehog git`` as a change
  feed. Detectors that care about added vs. removed lines see it here.

A strategy never raises because the engine misbehaved. Launch failures,
timeouts and non-zero exits without findings are logged and reported as an
outcome with ``engine_invocation_failed`` set and no findings.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from leakgate.engine.runner import EngineInvocationError
from leakgate.scanner.base import ScanOutcome, ScanStrategy, deduplicate
from leakgate.scanner.parser import parse_findings
from leakgate.utils.git import staged_diff

if TYPE_CHECKING:
    from collections.abc import Sequence

    from leakgate.engine.runner import EngineRunner

logger = logging.getLogger(__name__)

STDIN_GIT_URI = "file:///dev/stdin"


class EngineStrategy(ScanStrategy):
    """Shared invocation and parsing for strategies backed by the engine."""

    def __init__(self, runner: EngineRunner, cwd: Path | None = None) -> None:
        self.runner = runner
        self.cwd = cwd

    def _execute(
        self,
        args: Sequence[str],
        stdin: bytes | None = None,
        default_source: str | None = None,
    ) -> ScanOutcome:
        start_time = time.time()

        def elapsed() -> int:
            return int((time.time() - start_time) * 1000)

        try:
            result = self.runner.run(
                args, stdin=stdin, cwd=str(self.cwd) if self.cwd else None
            )
        except EngineInvocationError as e:
            logger.warning("%s scan skipped: %s", self.name, e)
            return ScanOutcome(
                strategy_name=self.name,
                engine_invocation_failed=True,
                error=str(e),
                duration_ms=elapsed(),
            )

        parsed = parse_findings(result.stdout)
        findings = parsed.findings
        if default_source is not None:
            findings = [
                f if f.source_file else replace(f, source_file=default_source) for f in findings
            ]

        if parsed.unparsed_hits:
            logger.warning(
                "%s scan: %d output record(s) mention a secret but could not be parsed",
                self.name,
                parsed.unparsed_hits,
            )

        failed = not result.ok and not findings and not parsed.unparsed_hits
        error = None
        if failed:
            error = result.stderr.strip().splitlines()[-1] if result.stderr.strip() else None
            logger.warning(
                "%s scan: engine exited with code %d%s",
                self.name,
                result.returncode,
                f" ({error})" if error else "",
            )

        return ScanOutcome(
            strategy_name=self.name,
            findings=deduplicate(findings),
            engine_invocation_failed=failed,
            error=error,
            unparsed_hits=parsed.unparsed_hits,
            duration_ms=elapsed(),
        )


class PerFileScan(EngineStrategy):
    """Scan a single staged file."""

    @property
    def name(self) -> str:
        return "per-file"

    @property
    def description(self) -> str:
        return "Scanning staged files"

    def scan_file(self, path: Path) -> ScanOutcome:
        """
        Scan one file with ``trufflehog filesystem``.

        Files deleted since enumeration are skipped and yield an empty outcome.
        """
        full_path = self.cwd / path if self.cwd and not path.is_absolute() else path
        if not full_path.is_file():
            logger.warning("Skipping %s: not found at %s", path, full_path)
            return ScanOutcome(strategy_name=self.name)

        return self._execute(["filesystem", str(path)], default_source=str(path))


class VerifiedSinceCommitScan(EngineStrategy):
    """Scan the working tree for verified secrets changed since a commit."""

    def __init__(
        self,
        runner: EngineRunner,
        cwd: Path | None = None,
        since_commit: str = "HEAD",
    ) -> None:
        super().__init__(runner, cwd)
        self.since_commit = since_commit

    @property
    def name(self) -> str:
        return "verified"

    @property
    def description(self) -> str:
        return f"Checking for verified secrets since {self.since_commit}"

    def scan_tree_since_last_commit(self) -> ScanOutcome:
        return self._execute(
            ["filesystem", ".", "--since-commit", self.since_commit, "--only-verified"]
        )


class DiffStreamScan(EngineStrategy):
    """Pipe the staged diff into the engine's git mode."""

    def __init__(
        self,
        runner: EngineRunner,
        cwd: Path | None = None,
        since_commit: str = "HEAD",
    ) -> None:
        super().__init__(runner, cwd)
        self.since_commit = since_commit

    @property
    def name(self) -> str:
        return "diff"

    @property
    def description(self) -> str:
        return "Running deep scan on staged changes"

    def scan_staged_diff(self, diff: bytes | None = None) -> ScanOutcome:
        """
        Scan the staged diff.

        Parameters:
            diff: Diff bytes to scan; read from ``git diff --cached`` when None.
        """
        if diff is None:
            diff = staged_diff(self.cwd)
        if not diff.strip():
            logger.debug("Staged diff is empty, nothing to stream")
            return ScanOutcome(strategy_name=self.name)

        return self._execute(
            ["git", STDIN_GIT_URI, "--since-commit", self.since_commit],
            stdin=diff,
        )
