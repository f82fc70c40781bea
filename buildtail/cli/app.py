"""Main Typer application — imports and registers all CLI commands.

Entry point: ``buildtail`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import typer

from buildtail.cli.commands.list_cmd import list_cmd
from buildtail.cli.commands.logs_cmd import logs_cmd
from buildtail.config import config
from buildtail.log_setup import configure_logging

app = typer.Typer(
    name="buildtail",
    help="buildtail: stream Kubernetes build and pipeline-run logs in execution order.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (default from BUILDTAIL_LOG_LEVEL or INFO).",
    ),
) -> None:
    """Configure logging before any command runs."""
    configure_logging(log_level or config.log_level)


# Register subcommands
app.command(name="logs", help="Display the logs of a build in execution order.")(logs_cmd)
app.command(name="log", hidden=True)(logs_cmd)
app.command(name="list", help="List the builds that can be selected.")(list_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
