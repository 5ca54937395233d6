"""Main CLI entry point."""

import logging

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from .issues import issues, outstanding, refresh
from .respond import respond

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="gh-feedback",
    help="Track your GitHub issues and answer maintainer feedback requests",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug logging"
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


app.command(name="refresh", context_settings={"help_option_names": ["-h", "--help"]})(
    refresh
)
app.command(name="issues", context_settings={"help_option_names": ["-h", "--help"]})(
    issues
)
app.command(
    name="outstanding", context_settings={"help_option_names": ["-h", "--help"]}
)(outstanding)
app.command(name="respond", context_settings={"help_option_names": ["-h", "--help"]})(
    respond
)


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def version() -> None:
    """Show version information."""
    from gh_feedback import __version__

    console.print(f"gh-feedback v{__version__}")


if __name__ == "__main__":
    app()
