"""Hook command - wire leakgate into pre-commit."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel

from leakgate.integrations.precommit import get_hook_config, install_hooks, uninstall_hooks

console = Console()


def hook(
    install: Annotated[
        bool, typer.Option("--install", "-i", help="Add the hook to .pre-commit-config.yaml")
    ] = False,
    uninstall: Annotated[
        bool, typer.Option("--uninstall", help="Remove the hook from .pre-commit-config.yaml")
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to .pre-commit-config.yaml"),
    ] = None,
) -> None:
    """Manage pre-commit hook integration."""
    if install and uninstall:
        console.print("[red]Error:[/red] Use either --install or --uninstall, not both")
        raise typer.Exit(code=1)

    if install:
        if install_hooks(config_path):
            console.print("[green]Installed leakgate hook in .pre-commit-config.yaml[/green]")
        else:
            console.print("leakgate hook already installed")
        return

    if uninstall:
        if uninstall_hooks(config_path):
            console.print("[green]Removed leakgate hook[/green]")
        else:
            console.print("leakgate hook not found")
        return

    console.print(Panel(get_hook_config(), title="leakgate hook"))
    console.print("Use --install to add it to your .pre-commit-config.yaml")
