"""Catalog loader — reads the cluster and indexes the selectable builds.

``load_catalog`` is a pure function of what the ``ClusterQuery`` returns:
it keeps no state between calls, so loading twice from an unchanged
cluster yields equal catalogs.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from buildtail.cluster.query import ClusterQuery
from buildtail.core.errors import EmptyCatalogError, QueryFailure
from buildtail.models.builds import AnyBuild, LegacyBuild, PipelineRunBuild
from buildtail.models.catalog import Catalog
from buildtail.models.filters import BuildFilter

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "master"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _timestamp(build: AnyBuild) -> float:
    created = build.created_at or _EPOCH
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created.timestamp()


def sort_key(build: AnyBuild) -> tuple[float, int, str, str]:
    """Total order: newest first, then highest build, then by name."""
    return (-_timestamp(build), -build.build_number, build.pipeline, build.display_name)


def _recency(build: AnyBuild) -> tuple[int, float]:
    return (build.build_number, _timestamp(build))


def load_legacy_builds(query: ClusterQuery, namespace: str) -> list[LegacyBuild]:
    """Convert every build pod that has init containers into a LegacyBuild."""
    builds: list[LegacyBuild] = []
    for pod in query.list_build_pods(namespace):
        if not pod.init_containers:
            continue
        build = LegacyBuild.from_pod(pod)
        if build is None:
            logger.debug("skipping pod %s: no build metadata", pod.name)
            continue
        builds.append(build)
    return builds


def load_pipeline_runs(
    query: ClusterQuery, namespace: str, errors: list[str]
) -> list[PipelineRunBuild]:
    """Describe every pipeline run; unreadable runs are dropped.

    Failures are appended to *errors*.  If every run fails the load is
    aborted with the last failure.
    """
    names = query.list_pipeline_run_names(namespace)
    builds: list[PipelineRunBuild] = []
    last_failure: QueryFailure | None = None

    for name in names:
        try:
            build = query.get_pipeline_run(namespace, name)
        except QueryFailure as exc:
            logger.warning("Error describing PipelineRun %s: %s", name, exc)
            errors.append(f"{name}: {exc}")
            last_failure = exc
            continue
        if build is not None:
            builds.append(build)

    if names and last_failure is not None and len(errors) == len(names):
        raise last_failure
    return builds


def load_catalog(
    query: ClusterQuery,
    namespace: str,
    build_filter: BuildFilter | None = None,
    *,
    pipeline_runs: bool | None = None,
    default_branch: str = DEFAULT_BRANCH,
) -> Catalog:
    """Load, filter, sort and index the builds in *namespace*.

    Parameters
    ----------
    pipeline_runs:
        Force the pipeline-run model (True) or the legacy pod model
        (False).  ``None`` asks the cluster which one is in use.
    default_branch:
        Branch whose newest build becomes ``Catalog.default_name``.

    Raises
    ------
    EmptyCatalogError
        If no build matches *build_filter*.
    QueryFailure
        If listing fails, or every pipeline run failed to load.
    """
    build_filter = build_filter or BuildFilter()
    if pipeline_runs is None:
        pipeline_runs = query.pipeline_runs_enabled(namespace)

    errors: list[str] = []
    candidates: list[AnyBuild]
    if pipeline_runs:
        candidates = list(load_pipeline_runs(query, namespace, errors))
        kind = "pipeline runs"
    else:
        candidates = list(load_legacy_builds(query, namespace))
        kind = "builds"

    matching = sorted(
        (b for b in candidates if build_filter.matches(b)), key=sort_key
    )
    if not matching:
        raise EmptyCatalogError(
            f"no {kind} have been triggered which match the current filter"
        )

    names: list[str] = []
    by_name: dict[str, AnyBuild] = {}
    latest: dict[str, AnyBuild] = {}
    default_name = ""
    for build in matching:
        name = build.display_name
        if name in by_name:
            logger.debug("duplicate build name %s ignored", name)
            continue
        names.append(name)
        by_name[name] = build

        current = latest.get(build.pipeline)
        if current is None or _recency(build) > _recency(current):
            latest[build.pipeline] = build

        if not default_name and build.branch == default_branch:
            default_name = name

    return Catalog(
        names=names,
        default_name=default_name,
        by_name=by_name,
        latest_by_pipeline=latest,
        errors=errors,
    )
