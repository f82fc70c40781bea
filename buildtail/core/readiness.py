"""Container readiness waiting and upstream failure detection."""

from __future__ import annotations

import logging
import threading

from pydantic import BaseModel, ConfigDict

from buildtail.cluster.query import ClusterQuery
from buildtail.core.retry import sleep_or_cancel
from buildtail.models.pods import PodSnapshot

logger = logging.getLogger(__name__)

POLL_INTERVAL = 1.0


class UnitFailure(BaseModel):
    """A container that terminated with a non-zero exit code."""

    model_config = ConfigDict(frozen=True)

    container: str
    exit_code: int
    message: str = ""

    def describe(self) -> str:
        return (
            f"container {self.container} failed with exit code "
            f"{self.exit_code}: {self.message}"
        )


def check_previous_failure(pod: PodSnapshot, index: int) -> UnitFailure | None:
    """Report init container *index* if it terminated unsuccessfully.

    Returns ``None`` while the container is still running, has not been
    reported yet, or exited with code 0.
    """
    status = pod.init_container_status(index)
    if status is None or status.terminated is None:
        return None
    if status.terminated.exit_code == 0:
        return None
    return UnitFailure(
        container=status.name,
        exit_code=status.terminated.exit_code,
        message=status.terminated.message,
    )


def await_start(
    query: ClusterQuery,
    namespace: str,
    pod: PodSnapshot,
    index: int,
    *,
    interval: float = POLL_INTERVAL,
    stop: threading.Event | None = None,
) -> PodSnapshot:
    """Block until init container *index* of *pod* has started.

    Returns immediately if the pod has already failed (its containers may
    still have partial output) or the container has started.  Otherwise
    re-reads the pod every *interval* seconds with no upper bound; pass
    *stop* to be able to cancel the wait.

    Raises
    ------
    QueryFailure
        If re-reading the pod fails.
    WaitCancelledError
        If *stop* is set while waiting.
    """
    if pod.has_failed:
        logger.warning("pod %s has failed", pod.name)
        return pod
    if pod.has_init_container_started(index):
        return pod

    container = pod.init_containers[index] if index < len(pod.init_containers) else ""
    logger.info("waiting for pod %s init container %s to start...", pod.name, container)
    while True:
        sleep_or_cancel(interval, stop)
        pod = query.read_pod(namespace, pod.name)
        if pod.has_init_container_started(index):
            return pod
        if pod.has_failed:
            logger.warning("pod %s has failed", pod.name)
            return pod
