"""Parse TruffleHog's newline-delimited JSON output into findings.

A TruffleHog ``--json`` record looks like:

    {"SourceMetadata": {"Data": {"Filesystem": {"file": "config.py", "line": 3}}},
     "DetectorName": "AWS", "Verified": false, "Raw": "AKIA...", ...}

Any record with a non-null ``Raw`` field is a finding. Log lines and other
records are ignored. A line that is not valid JSON but mentions ``"Raw"``
is counted as an unparsed hit so callers can decide to block on it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from leakgate.scanner.base import Finding

RAW_FIELD = "Raw"


@dataclass
class ParseResult:
    """Findings extracted from one engine run."""

    findings: list[Finding] = field(default_factory=list)
    unparsed_hits: int = 0
    records: int = 0


def _source_location(record: dict[str, Any]) -> tuple[str | None, int | None]:
    """Return (file, line) from any SourceMetadata.Data.<source> entry."""
    data = (record.get("SourceMetadata") or {}).get("Data") or {}
    if not isinstance(data, dict):
        return None, None

    # Filesystem and Git are the sources leakgate uses; accept any.
    for key in ("Filesystem", "Git", *data.keys()):
        source = data.get(key)
        if isinstance(source, dict) and source.get("file"):
            line = source.get("line")
            return str(source["file"]), line if isinstance(line, int) else None
    return None, None


def parse_record(record: dict[str, Any]) -> Finding | None:
    """Convert one decoded JSON record into a Finding, or None if it has no secret."""
    raw = record.get(RAW_FIELD)
    if raw is None:
        return None

    source_file, line_number = _source_location(record)
    return Finding(
        detector_name=str(record.get("DetectorName") or "unknown"),
        raw_secret=str(raw),
        source_file=source_file,
        verified=bool(record.get("Verified", False)),
        line_number=line_number,
    )


def parse_findings(raw_output: str) -> ParseResult:
    """
    Parse engine stdout into findings.

    Parameters:
        raw_output: Complete standard output of one engine invocation.

    Returns:
        ParseResult with findings in output order, the number of JSON records
        seen, and the number of undecodable lines that mention a secret.
    """
    result = ParseResult()

    for line in raw_output.splitlines():
        line = line.strip()
        if not line:
            continue

        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            if f'"{RAW_FIELD}"' in line:
                result.unparsed_hits += 1
            continue

        if not isinstance(record, dict):
            continue

        result.records += 1
        finding = parse_record(record)
        if finding is not None:
            result.findings.append(finding)

    return result
