"""Rich terminal renderer for build ledgers.

Color scheme
------------
- yellow : in progress
- green  : success
- red    : failure
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from stagecomment.models.entry import BuildStatus, LedgerState

if TYPE_CHECKING:
    from stagecomment.core.updater import UpdateResult


_STATUS_STYLES: dict[BuildStatus, str] = {
    BuildStatus.IN_PROGRESS: "bold yellow",
    BuildStatus.SUCCESS: "bold green",
    BuildStatus.FAILURE: "bold red",
}

_STATUS_LABELS: dict[BuildStatus, str] = {
    BuildStatus.IN_PROGRESS: "IN PROGRESS",
    BuildStatus.SUCCESS: "SUCCESS",
    BuildStatus.FAILURE: "FAILURE",
}


class LedgerRenderer:
    """Renders ``LedgerState`` and ``UpdateResult`` as Rich output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def build_table(self, state: LedgerState) -> Table:
        table = Table(show_header=True, header_style="bold", expand=False)
        table.add_column("", width=2)
        table.add_column("Commit", style="cyan", no_wrap=True)
        table.add_column("Status", no_wrap=True)
        table.add_column("Started at")
        table.add_column("Duration", justify="right")
        table.add_column("Deploy")
        table.add_column("Run", overflow="fold")

        for index, entry in enumerate(state.entries):
            style = _STATUS_STYLES[entry.status]
            table.add_row(
                entry.glyph.value,
                entry.commit_short_id + (" (latest)" if index == 0 else ""),
                Text(_STATUS_LABELS[entry.status], style=style),
                escape(entry.started_at),
                escape(entry.build_duration) if entry.build_duration else "[dim]-[/dim]",
                escape(entry.deploy_url) if entry.deploy_url else "[dim]-[/dim]",
                escape(entry.run_link),
            )
        return table

    def render_state(self, state: LedgerState) -> Panel:
        """Render the whole ledger as a Panel containing a Table."""
        summary = (
            f"[bold]Latest:[/bold] {state.latest.commit_short_id}  |  "
            f"[bold]Previous builds:[/bold] {len(state.history)}"
        )
        return Panel(
            Group(self.build_table(state), Text(""), Text.from_markup(summary)),
            title="[bold]Build Ledger[/bold]",
            border_style=_STATUS_STYLES[state.latest.status].split()[-1],
            padding=(1, 2),
        )

    def render_result(self, result: UpdateResult) -> Panel:
        """Render the outcome of one ledger update."""
        lines = [
            f"[bold]Comment:[/bold]  {result.comment_id} ({result.action})",
            f"[bold]Outcome:[/bold]  {result.outcome.value}",
            f"[bold]Commit:[/bold]   {result.state.latest.commit_short_id}",
            f"[bold]History:[/bold]  {len(result.state.history)} previous build(s)",
        ]
        if result.deploy_verified is not None:
            verified = (
                "[green]reachable[/green]"
                if result.deploy_verified
                else "[bold red]UNREACHABLE[/bold red]"
            )
            lines.append(f"[bold]Preview:[/bold]  {verified}")
        return Panel(
            "\n".join(lines),
            title="[bold]stagecomment[/bold]",
            border_style="green",
            padding=(1, 2),
        )

    def print_state(self, state: LedgerState) -> None:
        self.console.print(self.render_state(state))

    def print_result(self, result: UpdateResult) -> None:
        self.console.print(self.render_result(result))
