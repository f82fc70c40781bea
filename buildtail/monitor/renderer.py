"""Rich terminal rendering for build catalogs and streamed logs.

Color scheme
------------
- green     : SUCCEEDED
- red       : FAILED
- yellow    : RUNNING
- cyan      : PENDING
- dim       : UNKNOWN
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from buildtail.models.builds import BuildStatus, Unit
from buildtail.models.catalog import Catalog

# ---------------------------------------------------------------------------
# Status -> Rich markup mapping
# ---------------------------------------------------------------------------

_STATUS_MARKUP: dict[BuildStatus, str] = {
    BuildStatus.SUCCEEDED: "[green]SUCCEEDED[/green]",
    BuildStatus.FAILED: "[bold red]FAILED[/bold red]",
    BuildStatus.RUNNING: "[yellow]RUNNING[/yellow]",
    BuildStatus.PENDING: "[cyan]PENDING[/cyan]",
    BuildStatus.UNKNOWN: "[dim]UNKNOWN[/dim]",
}


class ConsoleLogOutput:
    """``LogOutput`` that writes headers, log lines and warnings to a Console.

    Log lines are printed verbatim (no markup, no highlighting) so build
    output containing square brackets is never mangled.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def build_header(self, label: str) -> None:
        self.console.print(f"Build logs for [bold cyan]{escape(label)}[/bold cyan]")

    def unit_header(self, unit: Unit) -> None:
        parts = [f"[bold cyan]{escape(unit.display_name)}[/bold cyan]"]
        if unit.stage:
            parts.append(f"stage [bold]{escape(unit.stage)}[/bold]")
        parts.append(f"container [bold]{escape(unit.container_name)}[/bold]")
        self.console.rule(" | ".join(parts), align="left", style="blue")

    def log_line(self, unit: Unit, line: str) -> None:
        self.console.print(Text(line.rstrip("\n")), highlight=False, soft_wrap=True)

    def warning(self, message: str) -> None:
        self.console.print(f"[bold yellow]WARNING:[/bold yellow] {escape(message)}")


class CatalogRenderer:
    """Renders a ``Catalog`` as a Rich table, newest build first."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render(self, catalog: Catalog) -> Table:
        table = Table(
            title="Builds",
            show_header=True,
            header_style="bold cyan",
            expand=True,
        )
        table.add_column("#", style="dim", width=4, justify="right")
        table.add_column("Build", min_width=30)
        table.add_column("Kind", width=12)
        table.add_column("Status", width=12, justify="center")
        table.add_column("Created", width=20)

        for i, build in enumerate(catalog.builds):
            name = escape(build.display_name)
            if build.display_name == catalog.default_name:
                name = f"[bold]{name}[/bold] [dim](default)[/dim]"
            created = (
                build.created_at.strftime("%Y-%m-%d %H:%M:%S") if build.created_at else "-"
            )
            table.add_row(
                str(i + 1),
                name,
                build.kind.replace("_", " "),
                _STATUS_MARKUP.get(build.status, build.status.value),
                created,
            )
        return table

    def print_catalog(self, catalog: Catalog) -> None:
        self.console.print(self.render(catalog))
        for error in catalog.errors:
            self.console.print(f"[yellow]skipped:[/yellow] {escape(error)}")
