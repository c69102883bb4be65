"""Gate controller - decides whether a commit may proceed.

The controller walks a small state machine:

    START -> LOCATING_ENGINE -> NO_ENGINE (fail)
                             -> ENUMERATING_CHANGES -> NO_CHANGES (pass)
                                                    -> SCANNING_PER_FILE
                                                    -> SCANNING_VERIFIED
                                                    -> SCANNING_DIFF
                                                    -> ALL_CLEAR (pass)

Any scanning state moves to FINDINGS_FOUND (fail) as soon as its strategy
reports a blocking finding, and no later, more expensive strategy runs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from leakgate.config import (
    STRATEGY_DIFF,
    STRATEGY_PER_FILE,
    STRATEGY_VERIFIED,
    GateConfig,
)
from leakgate.engine.locator import EngineHandle, EngineLocator
from leakgate.engine.runner import EngineRunner
from leakgate.scanner.base import Finding, ScanOutcome
from leakgate.scanner.strategies import DiffStreamScan, PerFileScan, VerifiedSinceCommitScan
from leakgate.utils.git import get_git_root, staged_files

logger = logging.getLogger(__name__)


class GateState(Enum):
    """States of one gate run."""

    START = "start"
    LOCATING_ENGINE = "locating-engine"
    NO_ENGINE = "no-engine"
    ENUMERATING_CHANGES = "enumerating-changes"
    NO_CHANGES = "no-changes"
    SCANNING_PER_FILE = "scanning-per-file"
    SCANNING_VERIFIED = "scanning-verified"
    SCANNING_DIFF = "scanning-diff"
    FINDINGS_FOUND = "findings-found"
    ALL_CLEAR = "all-clear"
    SYSTEM_ERROR = "system-error"


@dataclass(frozen=True)
class GateResult:
    """Terminal value of one gate run."""

    @property
    def passed(self) -> bool:
        return False

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1


@dataclass(frozen=True)
class Pass(GateResult):
    """Nothing to scan, or every strategy came back clean."""

    stage: GateState = GateState.ALL_CLEAR

    @property
    def passed(self) -> bool:
        return True


@dataclass(frozen=True)
class FailNoEngine(GateResult):
    """No scanning engine could be located."""


@dataclass(frozen=True)
class FailFindings(GateResult):
    """A strategy reported at least one blocking finding."""

    stage: GateState
    outcome: ScanOutcome

    @property
    def findings(self) -> list[Finding]:
        return self.outcome.findings


@dataclass(frozen=True)
class FailSystemError(GateResult):
    """The gate itself failed unexpectedly."""

    cause: str


@dataclass
class ScanStep:
    """One strategy in the ordered pipeline."""

    name: str
    state: GateState
    run: Callable[[], ScanOutcome]


@dataclass
class GateController:
    """Sequence engine discovery, change enumeration and the scan strategies.

    Attributes:
        config: Gate configuration.
        locator: Engine locator; built from ``config`` when None.
        list_staged: Returns the staged file set; defaults to ``git diff --cached``.
        runner_factory: Builds an EngineRunner for a resolved handle.
        cwd: Repository working directory. When None, the root of the git
            repository containing the process cwd is used, since staged paths
            are relative to it.
        progress: Optional callback receiving progress messages.

    Example:
        result = GateController(GateConfig()).run()
        raise SystemExit(result.exit_code)
    """

    config: GateConfig = field(default_factory=GateConfig)
    locator: EngineLocator | None = None
    list_staged: Callable[[Path | None], tuple[Path, ...]] = staged_files
    runner_factory: Callable[[EngineHandle, int], EngineRunner] = EngineRunner
    cwd: Path | None = None
    progress: Callable[[str], None] | None = None
    history: list[GateState] = field(default_factory=list, init=False)
    engine: EngineHandle | None = field(default=None, init=False)
    root: Path | None = field(default=None, init=False)

    def _enter(self, state: GateState) -> None:
        logger.debug("Gate state: %s", state.value)
        self.history.append(state)

    def _progress(self, message: str) -> None:
        if self.progress is not None:
            self.progress(message)

    @property
    def state(self) -> GateState:
        return self.history[-1] if self.history else GateState.START

    def run(self) -> GateResult:
        """Run the gate once. Each call starts from a fresh state."""
        self.history = []
        self.engine = None
        self.root = None
        self._enter(GateState.START)
        try:
            return self._run()
        except Exception as e:
            logger.exception("Secret gate failed unexpectedly")
            self._enter(GateState.SYSTEM_ERROR)
            return FailSystemError(cause=str(e) or type(e).__name__)

    def _run(self) -> GateResult:
        self._enter(GateState.LOCATING_ENGINE)
        locator = self.locator or EngineLocator.from_config(self.config)
        handle = locator.locate()
        if handle is None:
            self._enter(GateState.NO_ENGINE)
            return FailNoEngine()
        self.engine = handle
        self._progress(f"Using {handle.source} TruffleHog: {handle.path}")

        self._enter(GateState.ENUMERATING_CHANGES)
        self.root = self._resolve_root()
        staged = tuple(self.list_staged(self.root))
        if not staged:
            self._enter(GateState.NO_CHANGES)
            self._progress("No staged files to check")
            return Pass(stage=GateState.NO_CHANGES)

        for step in self._build_steps(handle, staged):
            self._enter(step.state)
            outcome = step.run()
            if outcome.is_blocking(self.config.block_on_unparsed):
                self._enter(GateState.FINDINGS_FOUND)
                return FailFindings(stage=step.state, outcome=outcome)
            if outcome.unparsed_hits:
                logger.warning(
                    "%s: unparsed engine output ignored (block_on_unparsed is off)",
                    step.name,
                )

        self._enter(GateState.ALL_CLEAR)
        return Pass(stage=GateState.ALL_CLEAR)

    def _resolve_root(self) -> Path | None:
        if self.cwd is not None:
            return self.cwd
        root = get_git_root(Path.cwd())
        if root is None:
            logger.warning("Not inside a git repository; scanning from %s", Path.cwd())
        else:
            logger.debug("Repository root: %s", root)
        return root

    def _build_steps(self, handle: EngineHandle, staged: tuple[Path, ...]) -> list[ScanStep]:
        runner = self.runner_factory(handle, self.config.timeout)
        since = self.config.since_commit
        per_file = PerFileScan(runner, cwd=self.root)
        verified = VerifiedSinceCommitScan(runner, cwd=self.root, since_commit=since)
        diff = DiffStreamScan(runner, cwd=self.root, since_commit=since)

        steps = {
            STRATEGY_PER_FILE: ScanStep(
                per_file.name,
                GateState.SCANNING_PER_FILE,
                lambda: self._scan_each_file(per_file, staged),
            ),
            STRATEGY_VERIFIED: ScanStep(
                verified.name,
                GateState.SCANNING_VERIFIED,
                self._announce(verified.description, verified.scan_tree_since_last_commit),
            ),
            STRATEGY_DIFF: ScanStep(
                diff.name,
                GateState.SCANNING_DIFF,
                self._announce(diff.description, diff.scan_staged_diff),
            ),
        }
        # Cost order is fixed regardless of how the config lists them.
        order = (STRATEGY_PER_FILE, STRATEGY_VERIFIED, STRATEGY_DIFF)
        return [steps[name] for name in order if name in self.config.strategies]

    def _announce(
        self, message: str, scan: Callable[[], ScanOutcome]
    ) -> Callable[[], ScanOutcome]:
        def run() -> ScanOutcome:
            self._progress(f"{message}...")
            return scan()

        return run

    def _scan_each_file(self, strategy: PerFileScan, staged: tuple[Path, ...]) -> ScanOutcome:
        """Scan staged files one at a time, stopping at the first blocking file."""
        self._progress(f"Scanning {len(staged)} staged file(s)...")
        failures = 0
        duration = 0

        for path in staged:
            outcome = strategy.scan_file(path)
            duration += outcome.duration_ms
            if outcome.is_blocking(self.config.block_on_unparsed):
                return outcome
            if outcome.engine_invocation_failed:
                failures += 1

        return ScanOutcome(
            strategy_name=strategy.name,
            engine_invocation_failed=failures == len(staged),
            duration_ms=duration,
        )


def run_gate(config: GateConfig | None = None, **kwargs) -> GateResult:
    """Convenience wrapper: build a controller and run it once."""
    return GateController(config=config or GateConfig(), **kwargs).run()
