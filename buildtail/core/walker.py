"""Stage/container walker — the single global visiting order of a build.

The walker is a generator so that stage *n + 1* is only examined after
the consumer has finished with stage *n*: later stage pods usually do not
exist until earlier stages complete, and the walker back-fills them from
the cluster as it reaches them.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator

from buildtail.cluster.query import ClusterQuery
from buildtail.core.errors import NoInitContainersError, StagePodTimeoutError
from buildtail.core.retry import retry_until
from buildtail.models.builds import AnyBuild, PipelineRunBuild, Stage, Unit
from buildtail.models.pods import PodSnapshot

logger = logging.getLogger(__name__)


def pod_units(pod: PodSnapshot, label: str, stage: str | None = None) -> list[Unit]:
    """Return *pod*'s init containers as units, in declaration order."""
    if not pod.init_containers:
        raise NoInitContainersError(pod.name, label)
    return [
        Unit(
            display_name=label,
            stage=stage,
            pod_name=pod.name,
            container_name=container,
            container_index=index,
        )
        for index, container in enumerate(pod.init_containers)
    ]


def backfill_stage_pod(
    query: ClusterQuery,
    namespace: str,
    run: PipelineRunBuild,
    stage: Stage,
    *,
    timeout: float,
    interval: float,
    stop: threading.Event | None = None,
) -> Stage:
    """Return a copy of *stage* with its pod, waiting for it if needed."""
    if stage.pod is not None:
        return stage

    def attempt() -> PodSnapshot | None:
        pod = query.find_stage_pod(namespace, run.pipeline_run, stage)
        if pod is None:
            logger.info(
                "no pod found yet for stage %s in build %s",
                stage.name,
                run.pipeline_run,
            )
        return pod

    pod = retry_until(
        attempt,
        subject=f"pod for stage {stage.name_including_parents} in build {run.pipeline_run}",
        interval=interval,
        timeout=timeout,
        error_cls=StagePodTimeoutError,
        stop=stop,
    )
    return stage.model_copy(update={"pod": pod})


def walk_units(
    query: ClusterQuery,
    namespace: str,
    build: AnyBuild,
    *,
    label: str | None = None,
    wait_timeout: float = 0.0,
    interval: float = 2.0,
    stop: threading.Event | None = None,
) -> Iterator[Unit]:
    """Yield every (stage, container) unit of *build* in execution order.

    Parameters
    ----------
    label:
        Display name stamped on each unit; defaults to the build's.
    wait_timeout:
        How long to wait for a stage pod to be created.  Zero makes a
        single lookup.
    """
    label = label or build.display_name
    if build.kind == "legacy":
        yield from pod_units(build.pod, label)
        return

    for stage in build.stages:
        stage = backfill_stage_pod(
            query,
            namespace,
            build,
            stage,
            timeout=wait_timeout,
            interval=interval,
            stop=stop,
        )
        assert stage.pod is not None
        yield from pod_units(stage.pod, label, stage.name_including_parents)
