"""``buildtail list`` — show the builds that can be selected."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape

from buildtail.cli.commands import _common
from buildtail.config import TailConfig
from buildtail.core.catalog import load_catalog
from buildtail.core.errors import BuildTailError
from buildtail.monitor.renderer import CatalogRenderer

console = Console()


def list_cmd(
    pending: bool = typer.Option(False, "--pending", "-p", help="Only pending builds."),
    text: str = typer.Option(
        "", "--filter", "-f", help="Only builds whose name contains the given text."
    ),
    owner: str = typer.Option("", "--owner", "-o", help="Filter by repository owner."),
    repository: str = typer.Option("", "--repo", "-r", help="Filter by repository."),
    branch: str = typer.Option("", "--branch", help="Filter by branch."),
    build: str = typer.Option("", "--build", help="Filter by build number."),
    current: bool = typer.Option(
        False,
        "--current",
        "-c",
        help="Use the current folder's git remote as owner and repository.",
    ),
    namespace: str = typer.Option(None, "--namespace", "-n", help="Namespace of the builds."),
    context: str = typer.Option(None, "--context", help="Kubeconfig context to use."),
) -> None:
    """List builds newest first; the default-branch build is marked."""
    cfg = TailConfig()
    try:
        build_filter = _common.build_filter(
            pending=pending,
            text=text,
            owner=owner,
            repository=repository,
            branch=branch,
            build=build,
            current=current,
        )
        query, _ = _common.create_cluster(cfg, context)
        catalog = load_catalog(
            query,
            namespace or cfg.namespace,
            build_filter,
            pipeline_runs=cfg.pipeline_runs,
            default_branch=cfg.default_branch,
        )
    except BuildTailError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    CatalogRenderer(console).print_catalog(catalog)
