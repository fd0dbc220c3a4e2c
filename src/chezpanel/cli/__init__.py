"""chezpanel CLI - see and act on the state of your chezmoi dotfiles."""

import typer

from ..utils import get_version, setup_logging
from . import doctor, files, repo, status, sync, ui

# Create the main app
app = typer.Typer(
    name="chezpanel",
    help="See and act on the state of your chezmoi dotfiles.",
    add_completion=True,
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging output.",
    ),
):
    """chezpanel - status, diffs and sync for chezmoi-managed files."""
    setup_logging(verbose=verbose)


# Register all commands
status.register(app)
files.register(app)
sync.register(app)
doctor.register(app)
repo.register(app)
ui.register(app)


@app.command()
def version():
    """Show the version of chezpanel."""
    typer.echo(f"chezpanel version {get_version()}")


def main():
    """Main entry point for the chezpanel CLI."""
    app()
