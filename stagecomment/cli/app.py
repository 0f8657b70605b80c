"""Main Typer application — imports and registers all CLI commands.

Entry point: ``stagecomment`` (configured via pyproject.toml scripts).

Commands: pre, post, failure, show.
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from stagecomment.cli.commands.report import failure_cmd, post_cmd, pre_cmd
from stagecomment.cli.commands.show import show_cmd
from stagecomment.config import config

app = typer.Typer(
    name="stagecomment",
    help="Keep a ledger of preview builds in a pull request comment.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log at DEBUG level."
    ),
) -> None:
    """Configure logging for every command."""
    level = "DEBUG" if verbose else config.effective_log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
        force=True,
    )


# Register subcommands
app.command(name="pre", help="Record that a build has started.")(pre_cmd)
app.command(name="post", help="Record that a build succeeded.")(post_cmd)
app.command(name="failure", help="Record that a build failed.")(failure_cmd)
app.command(name="show", help="Display a saved ledger comment.")(show_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
