"""Secret scanning strategies for the leakgate commit gate.

Three strategies drive the TruffleHog CLI with increasing scope and cost:
- PerFileScan: each staged file on its own
- VerifiedSinceCommitScan: verified secrets in the tree since HEAD
- DiffStreamScan: the staged diff streamed through ``trufflehog git``
"""

from leakgate.scanner.base import Finding, ScanOutcome, ScanStrategy, deduplicate
from leakgate.scanner.parser import ParseResult, parse_findings
from leakgate.scanner.strategies import DiffStreamScan, PerFileScan, VerifiedSinceCommitScan

__all__ = [
    "DiffStreamScan",
    "Finding",
    "ParseResult",
    "PerFileScan",
    "ScanOutcome",
    "ScanStrategy",
    "VerifiedSinceCommitScan",
    "deduplicate",
    "parse_findings",
]
