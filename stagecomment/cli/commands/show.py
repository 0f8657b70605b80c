"""``stagecomment show BODY_FILE`` — decode a saved comment and display it."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from stagecomment.core import codec
from stagecomment.display.renderer import LedgerRenderer

console = Console()


def show_cmd(
    body_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="File holding a comment body."
    ),
    tag: str = typer.Option(None, "--tag", "-t", help="Ledger scope tag."),
) -> None:
    """Decode a ledger comment body and print it as a table."""
    try:
        expected = codec.sentinel(tag)
    except ValueError as exc:
        console.print(f"[bold red]Invalid tag:[/bold red] {escape(str(exc))}", highlight=False)
        raise typer.Exit(code=1)

    body = body_file.read_text(encoding="utf-8")

    if not codec.is_ledger_comment(body, tag):
        console.print(
            f"[bold red]Not a ledger comment:[/bold red] expected {escape(repr(expected))}",
            markup=True,
            highlight=False,
        )
        raise typer.Exit(code=1)

    try:
        state = codec.parse(body)
    except codec.LedgerCodecError as exc:
        console.print(f"[bold red]Malformed ledger:[/bold red] {escape(str(exc))}", highlight=False)
        raise typer.Exit(code=1)

    LedgerRenderer(console=console).print_state(state)
