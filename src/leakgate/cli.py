"""Command-line interface for leakgate."""

import typer
from rich.console import Console

from leakgate.cli_commands.check import check, locate
from leakgate.cli_commands.hook import hook

app = typer.Typer(
    name="leakgate",
    help="Block commits that leak secrets, using TruffleHog.",
    no_args_is_help=True,
)
console = Console()

app.command()(check)
app.command()(locate)
app.command()(hook)


@app.command()
def version() -> None:
    """Show leakgate version."""
    from leakgate import __version__

    console.print(f"leakgate [bold green]{__version__}[/bold green]")


if __name__ == "__main__":
    app()
