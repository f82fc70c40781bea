"""Pod snapshot models — the read-only view of a build pod at one instant."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class PodPhase(str, Enum):
    """Kubernetes pod lifecycle phase."""

    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


class ContainerTermination(BaseModel):
    """Terminal state of a container that has exited."""

    model_config = ConfigDict(frozen=True)

    exit_code: int = 0
    message: str = ""
    reason: str = ""


class InitContainerStatus(BaseModel):
    """Runtime status of a single init container."""

    model_config = ConfigDict(frozen=True)

    name: str
    started: bool = False
    terminated: ContainerTermination | None = None


class PodSnapshot(BaseModel):
    """A frozen, point-in-time copy of a pod.

    ``init_containers`` lists container names in pod spec declaration order;
    ``init_container_statuses`` follows the same order but may be shorter
    while the kubelet has not reported every container yet.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    phase: PodPhase = PodPhase.PENDING
    labels: dict[str, str] = {}
    env: dict[str, str] = {}
    created_at: datetime | None = None
    init_containers: list[str] = []
    init_container_statuses: list[InitContainerStatus] = []

    @property
    def has_failed(self) -> bool:
        return self.phase == PodPhase.FAILED

    def init_container_status(self, index: int) -> InitContainerStatus | None:
        """Return the status of init container *index*, if reported."""
        if 0 <= index < len(self.init_container_statuses):
            return self.init_container_statuses[index]
        return None

    def has_init_container_started(self, index: int) -> bool:
        """Whether init container *index* is running or has already exited."""
        status = self.init_container_status(index)
        if status is None:
            return False
        return status.started or status.terminated is not None
