"""Kubernetes implementations of the cluster collaborators.

``KubernetesClusterQuery`` reads build pods through ``CoreV1Api`` and
Tekton pipeline runs through ``CustomObjectsApi``; ``KubernetesLogTail``
follows a container's log with ``kubernetes.watch``.  All Kubernetes API
errors are wrapped in ``QueryFailure`` naming the object being read.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import datetime
from typing import Any

import kubernetes
from kubernetes.client import CoreV1Api, CustomObjectsApi, V1Pod
from kubernetes.client.exceptions import ApiException

from buildtail.core.errors import QueryFailure
from buildtail.models.builds import BuildStatus, PipelineRunBuild, Stage
from buildtail.models.pods import (
    ContainerTermination,
    InitContainerStatus,
    PodPhase,
    PodSnapshot,
)

logger = logging.getLogger(__name__)

TEKTON_GROUP = "tekton.dev"
PIPELINE_RUN_LABEL = "tekton.dev/pipelineRun"
PIPELINE_TASK_LABEL = "tekton.dev/pipelineTask"
TASK_LABEL = "tekton.dev/task"

STRUCTURE_GROUP = "jenkins.io"
STRUCTURE_VERSION = "v1"
STRUCTURE_PLURAL = "pipelinestructures"

DEFAULT_BUILD_POD_SELECTOR = "build.knative.dev/buildName"


def load_client_config(context: str | None = None) -> None:
    """Load in-cluster config, falling back to the local kubeconfig."""
    try:
        kubernetes.config.load_incluster_config()
    except kubernetes.config.ConfigException:
        kubernetes.config.load_kube_config(context=context)


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def pod_snapshot_from_v1(pod: V1Pod) -> PodSnapshot:
    """Convert a client ``V1Pod`` into a frozen ``PodSnapshot``."""
    metadata = pod.metadata
    spec = pod.spec
    status = pod.status

    containers = (spec.init_containers if spec else None) or []
    env: dict[str, str] = {}
    for container in containers:
        for var in container.env or []:
            if var.value:
                env.setdefault(var.name, var.value)

    statuses: list[InitContainerStatus] = []
    for cs in (status.init_container_statuses if status else None) or []:
        state = cs.state
        terminated = state.terminated if state else None
        running = state.running if state else None
        statuses.append(
            InitContainerStatus(
                name=cs.name,
                started=bool(cs.started) or running is not None or terminated is not None,
                terminated=(
                    ContainerTermination(
                        exit_code=terminated.exit_code or 0,
                        message=terminated.message or "",
                        reason=terminated.reason or "",
                    )
                    if terminated is not None
                    else None
                ),
            )
        )

    phase_value = (status.phase if status else None) or PodPhase.UNKNOWN.value
    try:
        phase = PodPhase(phase_value)
    except ValueError:
        phase = PodPhase.UNKNOWN

    return PodSnapshot(
        name=metadata.name,
        phase=phase,
        labels=dict(metadata.labels or {}),
        env=env,
        created_at=metadata.creation_timestamp,
        init_containers=[c.name for c in containers],
        init_container_statuses=statuses,
    )


def pipeline_run_status(run: dict[str, Any]) -> BuildStatus:
    """Map the ``Succeeded`` condition of a pipeline run to a BuildStatus."""
    conditions = run.get("status", {}).get("conditions") or []
    for condition in conditions:
        if condition.get("type") != "Succeeded":
            continue
        value = condition.get("status")
        if value == "True":
            return BuildStatus.SUCCEEDED
        if value == "False":
            return BuildStatus.FAILED
        return BuildStatus.RUNNING
    return BuildStatus.PENDING


def stages_from_structure(structure: dict[str, Any]) -> list[Stage]:
    """Leaf stages of a PipelineStructure, with their parent path.

    Only stages that reference a task are backed by a pod; the others
    are grouping stages and only contribute to the parent path.
    """
    entries = structure.get("stages") or []
    parents_of = {entry.get("name"): entry.get("parent") for entry in entries}

    def parent_path(name: str) -> list[str]:
        path: list[str] = []
        parent = parents_of.get(name)
        while parent and parent not in path:
            path.insert(0, parent)
            parent = parents_of.get(parent)
        return path

    stages: list[Stage] = []
    for entry in entries:
        task_ref = entry.get("taskRef")
        if not task_ref:
            continue
        stages.append(
            Stage(
                name=entry["name"],
                parents=parent_path(entry["name"]),
                pod_labels={TASK_LABEL: task_ref},
            )
        )
    return stages


def stages_from_tasks(tasks: list[dict[str, Any]]) -> list[Stage]:
    """Stages of a Pipeline spec, one per pipeline task."""
    return [
        Stage(name=task["name"], pod_labels={PIPELINE_TASK_LABEL: task["name"]})
        for task in tasks
        if task.get("name")
    ]


def _label_selector(labels: dict[str, str]) -> str:
    return ",".join(f"{key}={value}" for key, value in sorted(labels.items()))


# ---------------------------------------------------------------------------
# ClusterQuery
# ---------------------------------------------------------------------------


class KubernetesClusterQuery:
    """``ClusterQuery`` backed by the official Kubernetes client.

    Parameters
    ----------
    core_api, custom_api:
        Preconfigured API clients; created from the loaded client config
        when omitted.
    build_pod_selector:
        Label selector identifying legacy build pods.
    tekton_version:
        API version of the ``tekton.dev`` group to read.
    """

    def __init__(
        self,
        core_api: CoreV1Api | None = None,
        custom_api: CustomObjectsApi | None = None,
        *,
        build_pod_selector: str = DEFAULT_BUILD_POD_SELECTOR,
        tekton_version: str = "v1",
    ) -> None:
        self._core = core_api or CoreV1Api()
        self._custom = custom_api or CustomObjectsApi()
        self._build_pod_selector = build_pod_selector
        self._tekton_version = tekton_version

    # -- pipeline-run model detection ---------------------------------

    def pipeline_runs_enabled(self, namespace: str) -> bool:
        try:
            self._custom.list_namespaced_custom_object(
                TEKTON_GROUP, self._tekton_version, namespace, "pipelineruns", limit=1
            )
        except ApiException as exc:
            if exc.status == 404:
                return False
            raise QueryFailure(f"PipelineRuns in namespace {namespace}", exc) from exc
        return True

    # -- pods ----------------------------------------------------------

    def list_build_pods(self, namespace: str) -> list[PodSnapshot]:
        try:
            pods = self._core.list_namespaced_pod(
                namespace, label_selector=self._build_pod_selector
            ).items
        except ApiException as exc:
            logger.warning("Failed to query pods %s", exc)
            raise QueryFailure(f"build pods in namespace {namespace}", exc) from exc
        return [pod_snapshot_from_v1(pod) for pod in pods]

    def read_pod(self, namespace: str, name: str) -> PodSnapshot:
        try:
            pod = self._core.read_namespaced_pod(name, namespace)
        except ApiException as exc:
            raise QueryFailure(f"pod {name}", exc) from exc
        return pod_snapshot_from_v1(pod)

    def find_stage_pod(
        self, namespace: str, pipeline_run: str, stage: Stage
    ) -> PodSnapshot | None:
        selector = _label_selector({PIPELINE_RUN_LABEL: pipeline_run, **stage.pod_labels})
        try:
            pods = self._core.list_namespaced_pod(namespace, label_selector=selector).items
        except ApiException as exc:
            raise QueryFailure(
                f"pod for stage {stage.name} in build {pipeline_run}", exc
            ) from exc
        if not pods:
            return None
        snapshots = [pod_snapshot_from_v1(pod) for pod in pods]
        return max(snapshots, key=lambda p: p.created_at.timestamp() if p.created_at else 0.0)

    # -- pipeline runs -------------------------------------------------

    def list_pipeline_run_names(self, namespace: str) -> list[str]:
        try:
            result = self._custom.list_namespaced_custom_object(
                TEKTON_GROUP, self._tekton_version, namespace, "pipelineruns"
            )
        except ApiException as exc:
            logger.warning("Failed to query PipelineRuns %s", exc)
            raise QueryFailure(f"PipelineRuns in namespace {namespace}", exc) from exc
        return [item["metadata"]["name"] for item in result.get("items", [])]

    def get_pipeline_run(self, namespace: str, name: str) -> PipelineRunBuild | None:
        run = self._get_custom(
            TEKTON_GROUP, self._tekton_version, namespace, "pipelineruns", name
        )
        if run is None:
            raise QueryFailure(f"PipelineRun {name}", "not found")

        labels = run.get("metadata", {}).get("labels") or {}
        owner = labels.get("owner", "")
        repository = labels.get("repository") or labels.get("repo", "")
        branch = labels.get("branch", "")
        build = labels.get("build", "")
        if not (owner and repository and branch and build):
            logger.debug("PipelineRun %s has no build labels", name)
            return None

        stages = [
            stage.model_copy(update={"pod": self.find_stage_pod(namespace, name, stage)})
            for stage in self._ordered_stages(namespace, run)
        ]
        return PipelineRunBuild(
            owner=owner,
            repository=repository,
            branch=branch,
            build=build,
            status=pipeline_run_status(run),
            created_at=_parse_timestamp(run["metadata"].get("creationTimestamp")),
            pipeline_run=name,
            stages=stages,
        )

    def _ordered_stages(self, namespace: str, run: dict[str, Any]) -> list[Stage]:
        name = run["metadata"]["name"]
        structure = self._get_custom(
            STRUCTURE_GROUP, STRUCTURE_VERSION, namespace, STRUCTURE_PLURAL, name
        )
        if structure is not None:
            stages = stages_from_structure(structure)
            if stages:
                return stages

        spec = run.get("spec", {})
        pipeline_ref = (spec.get("pipelineRef") or {}).get("name")
        if pipeline_ref:
            pipeline = self._get_custom(
                TEKTON_GROUP, self._tekton_version, namespace, "pipelines", pipeline_ref
            )
            if pipeline is None:
                raise QueryFailure(f"Pipeline {pipeline_ref}", "not found")
            return stages_from_tasks(pipeline.get("spec", {}).get("tasks") or [])
        return stages_from_tasks((spec.get("pipelineSpec") or {}).get("tasks") or [])

    def _get_custom(
        self, group: str, version: str, namespace: str, plural: str, name: str
    ) -> dict[str, Any] | None:
        """Read a custom object; ``None`` when it does not exist."""
        try:
            return self._custom.get_namespaced_custom_object(
                group, version, namespace, plural, name
            )
        except ApiException as exc:
            if exc.status == 404:
                return None
            raise QueryFailure(f"{plural} {name}", exc) from exc


# ---------------------------------------------------------------------------
# LogTail
# ---------------------------------------------------------------------------


class KubernetesLogTail:
    """Follows a container's log until the container terminates."""

    def __init__(self, core_api: CoreV1Api | None = None) -> None:
        self._core = core_api or CoreV1Api()

    def __call__(self, namespace: str, pod_name: str, container_name: str) -> Iterator[str]:
        watcher = kubernetes.watch.Watch()
        try:
            yield from watcher.stream(
                self._core.read_namespaced_pod_log,
                name=pod_name,
                namespace=namespace,
                container=container_name,
                follow=True,
            )
        except ApiException as exc:
            raise QueryFailure(
                f"log of pod {pod_name} container {container_name}", exc
            ) from exc
        finally:
            watcher.stop()
