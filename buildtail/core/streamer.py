"""Ordered log streaming over a resolved build.

``BuildLogStreamer`` drives the traversal: for each unit produced by the
walker it reports an upstream failure (if any), waits for the container
to start and streams its log to completion before moving on.  Upstream
failures never stop the traversal; operators see how far execution got.
"""

from __future__ import annotations

import logging
import threading

from buildtail.cluster.query import ClusterQuery, LogOutput, LogTail
from buildtail.core.errors import QueryFailure
from buildtail.core.readiness import POLL_INTERVAL, await_start, check_previous_failure
from buildtail.core.selector import Resolution
from buildtail.core.walker import walk_units
from buildtail.models.builds import Unit
from buildtail.models.pods import PodSnapshot

logger = logging.getLogger(__name__)


class BuildLogStreamer:
    """Streams every unit of a build, one after another.

    Parameters
    ----------
    query:
        Cluster reader; every unit re-reads its pod.
    log_tail:
        Byte-level transport streaming one container's log.
    output:
        Receives headers, log lines and warnings in visiting order.
    wait_timeout:
        Upper bound on waiting for a stage pod to be created.
    retry_interval:
        Delay between stage pod lookups.
    poll_interval:
        Delay between pod reads while waiting for a container to start.
    stream_unstarted_on_failure:
        Whether to still request the log of a container that never
        started inside a failed pod.
    """

    def __init__(
        self,
        query: ClusterQuery,
        log_tail: LogTail,
        output: LogOutput,
        namespace: str,
        *,
        wait_timeout: float = 0.0,
        retry_interval: float = 2.0,
        poll_interval: float = POLL_INTERVAL,
        stream_unstarted_on_failure: bool = True,
        stop: threading.Event | None = None,
    ) -> None:
        self._query = query
        self._log_tail = log_tail
        self._output = output
        self._namespace = namespace
        self._wait_timeout = wait_timeout
        self._retry_interval = retry_interval
        self._poll_interval = poll_interval
        self._stream_unstarted = stream_unstarted_on_failure
        self._stop = stop

    def stream(self, resolution: Resolution) -> list[Unit]:
        """Stream all units of *resolution*'s build; return the units visited."""
        label = resolution.label
        self._output.build_header(label)

        visited: list[Unit] = []
        previous: Unit | None = None
        for unit in walk_units(
            self._query,
            self._namespace,
            resolution.build,
            label=label,
            wait_timeout=self._wait_timeout,
            interval=self._retry_interval,
            stop=self._stop,
        ):
            pod = self._query.read_pod(self._namespace, unit.pod_name)
            if previous is not None:
                self._report_previous(previous, unit, pod)
            pod = await_start(
                self._query,
                self._namespace,
                pod,
                unit.container_index,
                interval=self._poll_interval,
                stop=self._stop,
            )
            self._stream_unit(unit, pod)
            visited.append(unit)
            previous = unit
        return visited

    def _report_previous(self, previous: Unit, current: Unit, pod: PodSnapshot) -> None:
        if previous.pod_name != current.pod_name:
            pod = self._query.read_pod(self._namespace, previous.pod_name)
        failure = check_previous_failure(pod, previous.container_index)
        if failure is not None:
            self._output.warning(failure.describe())

    def _stream_unit(self, unit: Unit, pod: PodSnapshot) -> None:
        never_started = pod.has_failed and not pod.has_init_container_started(
            unit.container_index
        )
        if never_started and not self._stream_unstarted:
            self._output.warning(
                f"skipping container {unit.container_name}: pod {pod.name} "
                f"failed before it started"
            )
            return

        if unit.stage:
            logger.info(
                "getting the log for build %s stage %s and init container %s",
                unit.display_name,
                unit.stage,
                unit.container_name,
            )
        else:
            logger.info(
                "getting the log for pod %s and init container %s",
                unit.pod_name,
                unit.container_name,
            )
        self._output.unit_header(unit)
        try:
            for line in self._log_tail(self._namespace, unit.pod_name, unit.container_name):
                self._output.log_line(unit, line)
        except QueryFailure as exc:
            if not never_started:
                raise
            self._output.warning(
                f"no log available for container {unit.container_name}: {exc}"
            )
