"""Check command - the pre-commit secret gate.

Runs the staged changes through TruffleHog three ways, cheapest first, and
stops at the first strategy that finds a secret:

1. Each staged file on its own
2. Verified secrets in the working tree since HEAD
3. The staged diff streamed through ``trufflehog git``

Configuration can be set in leakgate.toml or pyproject.toml:
    [tool.leakgate]
    timeout = 300
    strategies = ["per-file", "verified", "diff"]
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from leakgate.config import (
    STRATEGY_DIFF,
    STRATEGY_VERIFIED,
    ConfigNotFoundError,
    GateConfig,
    load_config,
)
from leakgate.engine.locator import EngineLocator
from leakgate.gate import (
    FailFindings,
    FailNoEngine,
    FailSystemError,
    GateController,
    GateState,
    Pass,
)
from leakgate.log import setup_logging
from leakgate.scanner.output import format_no_engine, format_rich, format_success

console = Console()


def _load_gate_config(config_file: Path | None, output_console: Console) -> GateConfig:
    try:
        return load_config(config_file)
    except ConfigNotFoundError as e:
        output_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None
    except tomllib.TOMLDecodeError as e:
        output_console.print(f"[yellow]Warning:[/yellow] TOML syntax error, using defaults: {e}")
        return GateConfig()


def check(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show engine commands and gate state changes"),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option("--ci", help="CI mode: no colors"),
    ] = False,
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to leakgate.toml config file (auto-detected if not specified)",
        ),
    ] = None,
    timeout: Annotated[
        int | None,
        typer.Option("--timeout", help="Per-strategy engine timeout in seconds"),
    ] = None,
    skip_verified: Annotated[
        bool,
        typer.Option("--skip-verified", help="Skip the verified-since-commit scan"),
    ] = False,
    skip_diff: Annotated[
        bool,
        typer.Option("--skip-diff", help="Skip the staged diff deep scan"),
    ] = False,
) -> None:
    """Check staged changes for secrets before committing.

    \b
    Exit codes:
      0 - No secrets found (or nothing staged)
      1 - Secrets found, TruffleHog missing, or the gate failed

    \b
    Examples:
      leakgate check                  # Full three-stage gate
      leakgate check --skip-diff      # Skip the deep diff scan
      leakgate check --ci             # Plain output for CI logs
    """
    output_console = Console(force_terminal=False, no_color=True) if ci else console
    setup_logging(verbose=verbose)

    config = _load_gate_config(config_file, output_console)
    if timeout is not None:
        if timeout <= 0:
            output_console.print("[red]Error:[/red] --timeout must be positive")
            raise typer.Exit(code=1)
        config.timeout = timeout
    if skip_verified:
        config.strategies = [s for s in config.strategies if s != STRATEGY_VERIFIED]
    if skip_diff:
        config.strategies = [s for s in config.strategies if s != STRATEGY_DIFF]

    output_console.print("[bold]Checking for secrets in staged files...[/bold]")

    controller = GateController(
        config=config,
        progress=lambda message: output_console.print(f"[dim]{message}[/dim]"),
    )
    result = controller.run()

    if isinstance(result, FailNoEngine):
        format_no_engine(output_console, env_var=config.engine_path_env)
    elif isinstance(result, FailFindings):
        format_rich(result.outcome, output_console, excerpt_length=config.excerpt_length)
    elif isinstance(result, FailSystemError):
        output_console.print(f"[red]Error:[/red] Secret gate failed: {result.cause}")
        output_console.print("Re-run with --verbose for details.")
    elif isinstance(result, Pass) and result.stage == GateState.ALL_CLEAR:
        format_success(output_console)

    if result.exit_code != 0:
        raise typer.Exit(code=result.exit_code)


def locate(
    config_file: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to leakgate.toml config file"),
    ] = None,
) -> None:
    """Show where TruffleHog is resolved from, tier by tier."""
    config = _load_gate_config(config_file, console)
    locator = EngineLocator.from_config(config)

    for name, handle in locator.describe_candidates():
        status = f"[green]{handle.path}[/green]" if handle else "[dim]not found[/dim]"
        console.print(f"  {name:<9} {status}")

    chosen = locator.locate()
    console.print()
    if chosen is None:
        format_no_engine(console, env_var=config.engine_path_env)
        raise typer.Exit(code=1)
    console.print(f"[bold]Using:[/bold] {chosen.path} ({chosen.source})")
