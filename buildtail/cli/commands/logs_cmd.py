"""``buildtail logs [NAME]`` — stream a build's logs in execution order.

Resolves NAME (a display name such as ``acme/app/master #12`` or a bare
pipeline name such as ``acme/app/master``) to a build, then streams the
log of every init container of every stage, in the order they run.
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape

from buildtail.cli.commands import _common
from buildtail.cli.durations import parse_duration
from buildtail.config import TailConfig
from buildtail.core.catalog import load_catalog
from buildtail.core.errors import BuildTailError
from buildtail.core.selector import BuildSelector
from buildtail.core.streamer import BuildLogStreamer
from buildtail.monitor.picker import RichPicker
from buildtail.monitor.renderer import ConsoleLogOutput

console = Console()


def logs_cmd(
    name: str = typer.Argument(
        None,
        help="Build to view: 'owner/repo/branch #N' or a bare pipeline name for its latest build.",
    ),
    wait: bool = typer.Option(
        False,
        "--wait",
        "-w",
        help="Wait for the build (and its stage pods) to be created before failing.",
    ),
    wait_duration: str = typer.Option(
        None,
        "--wait-duration",
        "-d",
        help="Timeout waiting for the pipeline to be created, e.g. 5m, 90s.",
    ),
    pending: bool = typer.Option(
        False,
        "--pending",
        "-p",
        help="Only offer builds which are still pending when no name is supplied.",
    ),
    text: str = typer.Option(
        "",
        "--filter",
        "-f",
        help="Only offer builds whose name contains the given text.",
    ),
    owner: str = typer.Option("", "--owner", "-o", help="Filter by repository owner."),
    repository: str = typer.Option("", "--repo", "-r", help="Filter by repository."),
    branch: str = typer.Option("", "--branch", help="Filter by branch."),
    build: str = typer.Option("", "--build", help="The build number to view, or 'latest'."),
    current: bool = typer.Option(
        False,
        "--current",
        "-c",
        help="Use the current folder's git remote as owner and repository.",
    ),
    namespace: str = typer.Option(None, "--namespace", "-n", help="Namespace of the builds."),
    context: str = typer.Option(None, "--context", help="Kubeconfig context to use."),
    batch_mode: bool = typer.Option(
        False,
        "--batch-mode",
        "-b",
        help="Never prompt; a build name is then required.",
    ),
) -> None:
    """Display the logs of a build, stage by stage and container by container."""
    cfg = TailConfig()
    ns = namespace or cfg.namespace
    wait_timeout = (
        parse_duration(wait_duration) if wait_duration else cfg.wait_timeout_seconds
    )

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
        query, log_tail = _common.create_cluster(cfg, context)

        selector = BuildSelector(
            lambda: load_catalog(
                query,
                ns,
                build_filter,
                pipeline_runs=cfg.pipeline_runs,
                default_branch=cfg.default_branch,
            ),
            picker=RichPicker(console),
            wait_timeout=wait_timeout,
            interval=cfg.retry_interval_seconds,
        )
        resolution = selector.resolve(name, wait=wait, interactive=not batch_mode)

        streamer = BuildLogStreamer(
            query,
            log_tail,
            ConsoleLogOutput(console),
            ns,
            wait_timeout=wait_timeout if wait else 0.0,
            retry_interval=cfg.retry_interval_seconds,
            poll_interval=cfg.poll_interval_seconds,
            stream_unstarted_on_failure=cfg.stream_unstarted_on_failure,
        )
        streamer.stream(resolution)
    except BuildTailError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        console.print("[dim]Interrupted.[/dim]")
        raise typer.Exit(code=130)
