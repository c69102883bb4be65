"""Human-readable reporting for gate results.

Secrets are never printed in full: only the first ``excerpt_length``
characters appear, so a report cannot re-leak a key into CI logs or
terminal scrollback.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape

from leakgate.scanner.base import DEFAULT_EXCERPT_LENGTH

if TYPE_CHECKING:
    from collections.abc import Iterable

    from rich.console import Console

    from leakgate.scanner.base import Finding, ScanOutcome

RULE = "━" * 58

UNPARSED_MESSAGE = "Secret detected (details unavailable: engine output could not be parsed)"

INSTALL_INSTRUCTIONS = """TruffleHog is not installed!

TruffleHog should have been installed automatically by the editor extension.

If it's missing, reinstall it:
  - Open Command Palette (Ctrl+Shift+P / Cmd+Shift+P)
  - Run: 'GoKwik: Setup Linting & Formatting'

Or install manually:
  macOS (Homebrew): brew install trufflehog
  Linux: curl -sSfL https://raw.githubusercontent.com/trufflesecurity/trufflehog/main/scripts/install.sh | sh -s -- -b /usr/local/bin

Or point {env_var} at an existing trufflehog binary."""

COMMON_SECRET_TYPES = (
    "API keys (AWS, GCP, Azure, etc.)",
    "Database passwords",
    "Private keys (SSH, JWT, etc.)",
    "OAuth tokens",
    "Webhook URLs with secrets",
)

STAGED_REMEDIATION = (
    "Remove the secrets from your staged changes",
    "Use environment variables instead",
    "Consider using: git reset HEAD <file>",
)

VERIFIED_REMEDIATION = (
    "Remove the secrets from your code",
    "Use environment variables or secret management tools",
    "Never commit API keys, passwords, or tokens",
)

BYPASS_HINT = "git commit --no-verify"

HEADLINES = {
    "per-file": "SECRETS DETECTED IN STAGED FILES!",
    "verified": "VERIFIED SECRETS FOUND IN STAGED FILES!",
    "diff": "SECRETS DETECTED IN STAGED CHANGES!",
}


def format_finding(finding: Finding, excerpt_length: int = DEFAULT_EXCERPT_LENGTH) -> list[str]:
    """Return the report lines for one finding, without markup."""
    if finding.is_unparsed:
        return [UNPARSED_MESSAGE]

    lines = []
    if finding.source_file:
        location = finding.source_file
        if finding.line_number:
            location += f":{finding.line_number}"
        lines.append(f"File: {location}")
    lines.append(f"  Detector: {finding.detector_name}")
    lines.append(f"  Secret Found: {finding.excerpt(excerpt_length)}...")
    if finding.verified:
        lines.append("  Verified: yes (the engine confirmed this secret is live)")
    return lines


def render(findings: Iterable[Finding], excerpt_length: int = DEFAULT_EXCERPT_LENGTH) -> str:
    """
    Render findings as plain text.

    Parameters:
        findings: Findings to report.
        excerpt_length: Number of leading secret characters to show.

    Returns:
        One block per finding separated by blank lines.
    """
    blocks = ["\n".join(format_finding(f, excerpt_length)) for f in findings]
    return "\n\n".join(blocks)


def _numbered(items: Iterable[str]) -> str:
    return "\n".join(f"  {i}. {item}" for i, item in enumerate(items, start=1))


def format_rich(
    outcome: ScanOutcome,
    console: Console,
    excerpt_length: int = DEFAULT_EXCERPT_LENGTH,
) -> None:
    """Print a failing outcome with remediation guidance."""
    headline = HEADLINES.get(outcome.strategy_name, "SECRETS DETECTED!")

    console.print()
    console.print(f"[red]{RULE}[/red]")
    console.print(f"[bold red]{headline}[/bold red]")
    console.print(f"[red]{RULE}[/red]")

    for finding in outcome.findings:
        console.print()
        for line in format_finding(finding, excerpt_length):
            console.print(escape(line), highlight=False)

    for _ in range(outcome.unparsed_hits):
        console.print()
        console.print(f"[yellow]{UNPARSED_MESSAGE}[/yellow]")

    console.print()
    if outcome.strategy_name == "verified" or outcome.has_verified:
        console.print("[bold red]Critical: Verified secrets were detected![/bold red]")
        console.print()
        console.print("[bold]What to do:[/bold]")
        console.print(_numbered(VERIFIED_REMEDIATION))
        console.print()
        console.print("To bypass this check (NOT RECOMMENDED):")
        console.print(f"  {BYPASS_HINT}")
    else:
        console.print("[bold]What to do:[/bold]")
        console.print(_numbered(STAGED_REMEDIATION))
        console.print()
        console.print("[bold]Common secret types:[/bold]")
        for item in COMMON_SECRET_TYPES:
            console.print(f"  • {item}")
    console.print()


def format_no_engine(console: Console, env_var: str = "TRUFFLEHOG_PATH") -> None:
    """Print install guidance when no engine could be located."""
    console.print(f"[red]{INSTALL_INSTRUCTIONS.format(env_var=env_var)}[/red]", highlight=False)


def format_success(console: Console) -> None:
    console.print(f"[green]{RULE}[/green]")
    console.print("[bold green]No secrets detected in staged files![/bold green]")
    console.print("[green]Safe to commit[/green]")
    console.print(f"[green]{RULE}[/green]")
