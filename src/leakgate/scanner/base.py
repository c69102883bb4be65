"""Core types shared by the scan strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

DEFAULT_EXCERPT_LENGTH = 50

# Shown for output that clearly reported a secret but could not be parsed.
UNPARSED_DETECTOR = ""


@dataclass(frozen=True)
class Finding:
    """One secret reported by the engine.

    Attributes:
        detector_name: Engine detector that fired (e.g. "AWS", "Github").
        raw_secret: The matched secret. Never displayed in full.
        source_file: File the secret was found in, when the engine says.
        verified: True if the engine confirmed the secret is live.
        line_number: Line number, when the engine reports one.
    """

    detector_name: str
    raw_secret: str = field(repr=False)
    source_file: str | None = None
    verified: bool = False
    line_number: int | None = None

    def excerpt(self, length: int = DEFAULT_EXCERPT_LENGTH) -> str:
        """Return at most ``length`` leading characters of the secret."""
        return self.raw_secret[:length]

    @property
    def is_unparsed(self) -> bool:
        """True for placeholders standing in for unparseable engine output."""
        return self.detector_name == UNPARSED_DETECTOR

    @property
    def dedup_key(self) -> tuple[str, str, str | None, int | None]:
        return (self.detector_name, self.raw_secret, self.source_file, self.line_number)


@dataclass
class ScanOutcome:
    """Result of running one strategy.

    Attributes:
        strategy_name: Which strategy produced this outcome.
        findings: Deduplicated findings.
        engine_invocation_failed: The engine could not be run or exited
            abnormally without usable output.
        error: Human-readable reason for an invocation failure.
        unparsed_hits: Output records that mention a secret but are not
            valid JSON.
        duration_ms: Wall-clock time spent in the strategy.
    """

    strategy_name: str
    findings: list[Finding] = field(default_factory=list)
    engine_invocation_failed: bool = False
    error: str | None = None
    unparsed_hits: int = 0
    duration_ms: int = field(default=0, compare=False)

    @property
    def has_findings(self) -> bool:
        return bool(self.findings) or self.unparsed_hits > 0

    @property
    def has_verified(self) -> bool:
        return any(f.verified for f in self.findings)

    def is_blocking(self, block_on_unparsed: bool = True) -> bool:
        """Whether this outcome must fail the gate.

        Any finding blocks. Unparsed hits block unless
        ``block_on_unparsed`` is False.
        """
        if self.findings:
            return True
        return block_on_unparsed and self.unparsed_hits > 0


class ScanStrategy(ABC):
    """A way of pointing the engine at staged changes."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return strategy identifier."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Return a one-line description for progress output."""


def deduplicate(findings: list[Finding]) -> list[Finding]:
    """Remove duplicate findings, preserving first-seen order.

    Duplicates share detector, secret, file and line. When one copy is
    verified and another is not, the verified copy is kept.
    """
    seen: dict[tuple, Finding] = {}

    for finding in findings:
        key = finding.dedup_key
        existing = seen.get(key)
        if existing is None or (finding.verified and not existing.verified):
            seen[key] = finding

    return list(seen.values())
