"""Helpers shared by the ``logs`` and ``list`` commands."""

from __future__ import annotations

from pathlib import Path

from buildtail.cluster.git_remote import repository_from_folder
from buildtail.cluster.query import ClusterQuery, LogTail
from buildtail.config import TailConfig
from buildtail.models.filters import BuildFilter


def create_cluster(cfg: TailConfig, context: str | None = None) -> tuple[ClusterQuery, LogTail]:
    """Connect to the cluster and return the query and log-tail clients."""
    from buildtail.cluster.kube import (
        KubernetesClusterQuery,
        KubernetesLogTail,
        load_client_config,
    )

    load_client_config(context or cfg.kube_context)
    query = KubernetesClusterQuery(
        build_pod_selector=cfg.build_pod_selector,
        tekton_version=cfg.tekton_api_version,
    )
    return query, KubernetesLogTail()


def build_filter(
    *,
    pending: bool,
    text: str,
    owner: str,
    repository: str,
    branch: str,
    build: str,
    current: bool,
    folder: Path | None = None,
) -> BuildFilter:
    """Assemble the selection filter from command-line flags.

    With *current*, owner and repository come from the working folder's
    git remote instead of the flags.
    """
    if current:
        repo = repository_from_folder(folder)
        owner, repository = repo.owner, repo.name
    return BuildFilter(
        pending=pending,
        filter=text,
        owner=owner,
        repository=repository,
        branch=branch,
        build=build,
    )
