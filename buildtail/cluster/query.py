"""Collaborator protocols between the traversal engine and the cluster.

The core never talks to Kubernetes directly.  It reads cluster state
through a ``ClusterQuery``, streams container output through a
``LogTail`` and, when the user did not name a build, asks an
``InteractivePicker``.  ``buildtail.cluster.kube`` provides the real
Kubernetes implementations; tests provide in-memory ones.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol, runtime_checkable

from buildtail.models.builds import PipelineRunBuild, Stage, Unit
from buildtail.models.pods import PodSnapshot


@runtime_checkable
class ClusterQuery(Protocol):
    """Read-only access to build pods and pipeline runs.

    Every method re-reads the cluster; implementations raise
    ``QueryFailure`` when a read fails.
    """

    def pipeline_runs_enabled(self, namespace: str) -> bool:
        """Whether builds in *namespace* run as multi-stage pipeline runs."""
        ...

    def list_build_pods(self, namespace: str) -> list[PodSnapshot]:
        """Return every legacy build pod in *namespace*."""
        ...

    def list_pipeline_run_names(self, namespace: str) -> list[str]:
        """Return the names of every pipeline run in *namespace*."""
        ...

    def get_pipeline_run(self, namespace: str, name: str) -> PipelineRunBuild | None:
        """Describe one pipeline run, stages in declaration order.

        Returns ``None`` for runs that are not builds (no build metadata).
        """
        ...

    def read_pod(self, namespace: str, name: str) -> PodSnapshot:
        """Return a fresh snapshot of the named pod."""
        ...

    def find_stage_pod(
        self, namespace: str, pipeline_run: str, stage: Stage
    ) -> PodSnapshot | None:
        """Return the pod backing *stage*, or ``None`` if not created yet."""
        ...


@runtime_checkable
class LogTail(Protocol):
    """Streams one container's output, line by line, until it terminates."""

    def __call__(self, namespace: str, pod_name: str, container_name: str) -> Iterator[str]:
        ...


@runtime_checkable
class InteractivePicker(Protocol):
    """Lets a human choose one name from a list."""

    def pick(self, names: list[str], prompt: str, default: str = "") -> str:
        ...


@runtime_checkable
class LogOutput(Protocol):
    """Receives the traversal's visible output in visiting order."""

    def build_header(self, label: str) -> None:
        ...

    def unit_header(self, unit: Unit) -> None:
        ...

    def log_line(self, unit: Unit, line: str) -> None:
        ...

    def warning(self, message: str) -> None:
        ...
