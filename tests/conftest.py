"""Shared test fixtures for buildtail.

``FakeClusterQuery`` is an in-memory cluster whose answers can change from
one read to the next (scripted snapshot sequences), so tests can model
pods and pipelines that appear or progress while we are waiting on them.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from buildtail.core.errors import QueryFailure
from buildtail.models.builds import (
    BuildStatus,
    LegacyBuild,
    PipelineRunBuild,
    Stage,
    Unit,
)
from buildtail.models.pods import (
    ContainerTermination,
    InitContainerStatus,
    PodPhase,
    PodSnapshot,
)

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClusterQuery:
    """In-memory ``ClusterQuery``.

    ``pods`` and ``stage_pods`` hold *sequences* of answers: each read
    consumes the first answer until only one is left, which then repeats.
    """

    def __init__(self, events: list[tuple[Any, ...]] | None = None) -> None:
        self.pipeline_runs = False
        self.build_pods: list[PodSnapshot] = []
        self.runs: dict[str, PipelineRunBuild | None | Exception] = {}
        self.pods: dict[str, list[PodSnapshot]] = {}
        self.stage_pods: dict[tuple[str, str], list[PodSnapshot | None]] = {}
        self.events = events if events is not None else []
        self.pod_reads: list[str] = []
        self.stage_pod_lookups: list[str] = []

    @staticmethod
    def _next(sequence: list[Any]) -> Any:
        if len(sequence) > 1:
            return sequence.pop(0)
        return sequence[0]

    def pipeline_runs_enabled(self, namespace: str) -> bool:
        return self.pipeline_runs

    def list_build_pods(self, namespace: str) -> list[PodSnapshot]:
        return list(self.build_pods)

    def list_pipeline_run_names(self, namespace: str) -> list[str]:
        return list(self.runs)

    def get_pipeline_run(self, namespace: str, name: str) -> PipelineRunBuild | None:
        run = self.runs[name]
        if isinstance(run, Exception):
            raise run
        return run

    def read_pod(self, namespace: str, name: str) -> PodSnapshot:
        self.pod_reads.append(name)
        if name not in self.pods:
            raise QueryFailure(f"pod {name}", "not found")
        return self._next(self.pods[name])

    def find_stage_pod(
        self, namespace: str, pipeline_run: str, stage: Stage
    ) -> PodSnapshot | None:
        self.stage_pod_lookups.append(stage.name)
        sequence = self.stage_pods.get((pipeline_run, stage.name))
        if not sequence:
            return None
        return self._next(sequence)

    def add_pod(self, *snapshots: PodSnapshot) -> None:
        self.pods[snapshots[0].name] = list(snapshots)


class FakeLogTail:
    """``LogTail`` that replays canned lines per container."""

    def __init__(self, events: list[tuple[Any, ...]]) -> None:
        self.events = events
        self.lines: dict[str, list[str]] = {}
        self.failures: dict[str, Exception] = {}

    def __call__(self, namespace: str, pod_name: str, container_name: str) -> Iterator[str]:
        self.events.append(("stream", pod_name, container_name))
        if container_name in self.failures:
            raise self.failures[container_name]
        yield from self.lines.get(container_name, [f"{container_name} output"])


class RecordingOutput:
    """``LogOutput`` that records everything in a shared event list."""

    def __init__(self, events: list[tuple[Any, ...]]) -> None:
        self.events = events

    def build_header(self, label: str) -> None:
        self.events.append(("build", label))

    def unit_header(self, unit: Unit) -> None:
        self.events.append(("unit", unit.stage, unit.container_name))

    def log_line(self, unit: Unit, line: str) -> None:
        self.events.append(("line", unit.container_name, line))

    def warning(self, message: str) -> None:
        self.events.append(("warning", message))

    def of_kind(self, kind: str) -> list[tuple[Any, ...]]:
        return [e for e in self.events if e[0] == kind]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def events() -> list[tuple[Any, ...]]:
    """Shared, ordered record of reads, streams and output."""
    return []


@pytest.fixture
def fake_query(events: list[tuple[Any, ...]]) -> FakeClusterQuery:
    return FakeClusterQuery(events)


@pytest.fixture
def fake_log_tail(events: list[tuple[Any, ...]]) -> FakeLogTail:
    return FakeLogTail(events)


@pytest.fixture
def output(events: list[tuple[Any, ...]]) -> RecordingOutput:
    return RecordingOutput(events)


@pytest.fixture
def namespace() -> str:
    return "jx"


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_pod() -> Callable[..., PodSnapshot]:
    """Factory fixture: build a PodSnapshot.

    ``started`` is the number of leading init containers that have
    started; ``exit_codes`` marks containers as terminated.
    """

    def _factory(
        name: str = "build-pod",
        containers: tuple[str, ...] = ("step-a", "step-b"),
        *,
        started: int = 0,
        exit_codes: dict[str, int] | None = None,
        phase: PodPhase = PodPhase.PENDING,
        **overrides: Any,
    ) -> PodSnapshot:
        exit_codes = exit_codes or {}
        statuses = []
        for index, container in enumerate(containers):
            terminated = None
            if container in exit_codes:
                terminated = ContainerTermination(
                    exit_code=exit_codes[container],
                    message=f"{container} exited",
                )
            statuses.append(
                InitContainerStatus(
                    name=container,
                    started=index < started,
                    terminated=terminated,
                )
            )
        defaults: dict[str, Any] = {
            "name": name,
            "phase": phase,
            "created_at": BASE_TIME,
            "init_containers": list(containers),
            "init_container_statuses": statuses,
        }
        defaults.update(overrides)
        return PodSnapshot(**defaults)

    return _factory


@pytest.fixture
def make_legacy_build(make_pod: Callable[..., PodSnapshot]) -> Callable[..., LegacyBuild]:
    """Factory fixture: build a LegacyBuild around a fresh pod."""

    def _factory(
        owner: str = "acme",
        repository: str = "app",
        branch: str = "master",
        build: str = "1",
        *,
        minutes: int = 0,
        status: BuildStatus = BuildStatus.SUCCEEDED,
        pod: PodSnapshot | None = None,
    ) -> LegacyBuild:
        return LegacyBuild(
            owner=owner,
            repository=repository,
            branch=branch,
            build=build,
            status=status,
            created_at=BASE_TIME + timedelta(minutes=minutes),
            pod=pod or make_pod(name=f"{repository}-{branch}-{build}".lower()),
        )

    return _factory


@pytest.fixture
def make_pipeline_run() -> Callable[..., PipelineRunBuild]:
    """Factory fixture: build a PipelineRunBuild with unscheduled stages."""

    def _factory(
        owner: str = "acme",
        repository: str = "app",
        branch: str = "master",
        build: str = "1",
        *,
        stages: list[Stage] | None = None,
        minutes: int = 0,
        status: BuildStatus = BuildStatus.RUNNING,
    ) -> PipelineRunBuild:
        return PipelineRunBuild(
            owner=owner,
            repository=repository,
            branch=branch,
            build=build,
            status=status,
            created_at=BASE_TIME + timedelta(minutes=minutes),
            pipeline_run=f"{owner}-{repository}-{branch}-{build}".lower(),
            stages=stages if stages is not None else [Stage(name="build")],
        )

    return _factory
