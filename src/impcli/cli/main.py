"""imp CLI entry point."""

import typer

from impcli import __version__
from impcli.cli.init_cmd import init

app = typer.Typer(
    name="imp",
    help="Command-line tools for Electric Imp projects",
    no_args_is_help=True,
)

# Register subcommands
app.command(name="init")(init)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"imp {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Command-line tools for Electric Imp projects."""
