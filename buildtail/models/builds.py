"""Build descriptor models — one selection surface over two execution models.

A build is either a *legacy* build (a single pod whose init containers are
the build steps) or a *pipeline run* (an ordered list of stages, each backed
by its own pod once the cluster schedules it).  Both variants share the
capability set used for naming, filtering and sorting; the ``kind`` tag
discriminates between them so callers never need runtime type checks.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from buildtail.models.pods import PodPhase, PodSnapshot


class BuildStatus(str, Enum):
    """Coarse lifecycle status shared by both build variants."""

    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"

    @property
    def is_pending(self) -> bool:
        """True while the build has not reached a terminal state."""
        return self in (BuildStatus.PENDING, BuildStatus.RUNNING)


_PHASE_TO_STATUS: dict[PodPhase, BuildStatus] = {
    PodPhase.PENDING: BuildStatus.PENDING,
    PodPhase.RUNNING: BuildStatus.RUNNING,
    PodPhase.SUCCEEDED: BuildStatus.SUCCEEDED,
    PodPhase.FAILED: BuildStatus.FAILED,
    PodPhase.UNKNOWN: BuildStatus.UNKNOWN,
}

# Metadata lookups for legacy build pods: labels first, then the
# environment injected into the build's init containers.
_OWNER_KEYS = ("owner", "REPO_OWNER")
_REPOSITORY_KEYS = ("repository", "repo", "REPO_NAME")
_BRANCH_KEYS = ("branch", "BRANCH_NAME", "PULL_BASE_REF")
_BUILD_KEYS = ("build", "BUILD_NUMBER", "BUILD_ID")


def _first_value(sources: list[dict[str, str]], keys: tuple[str, ...]) -> str:
    for source in sources:
        for key in keys:
            value = source.get(key, "")
            if value:
                return value
    return ""


def parse_build_number(build: str) -> int:
    """Parse a build string to an int; 0 means unspecified or latest."""
    try:
        return max(int(build), 0)
    except (TypeError, ValueError):
        return 0


class BuildDescriptor(BaseModel):
    """Capability set common to every build variant."""

    model_config = ConfigDict(frozen=True)

    owner: str = ""
    repository: str = ""
    branch: str = ""
    build: str = ""
    status: BuildStatus = BuildStatus.UNKNOWN
    created_at: datetime | None = None

    @property
    def pipeline(self) -> str:
        """Pipeline name: ``owner/repository/branch``."""
        return f"{self.owner}/{self.repository}/{self.branch}"

    @property
    def build_number(self) -> int:
        return parse_build_number(self.build)

    @property
    def display_name(self) -> str:
        """Externally addressable identity, e.g. ``acme/app/master #12``."""
        return f"{self.pipeline} #{self.build}"


class LegacyBuild(BuildDescriptor):
    """A build executed as the init containers of a single pod."""

    kind: Literal["legacy"] = "legacy"
    pod: PodSnapshot

    @classmethod
    def from_pod(cls, pod: PodSnapshot) -> LegacyBuild | None:
        """Build a descriptor from a build pod.

        Returns ``None`` when the pod does not carry enough metadata to be
        named (owner, repository, branch and build number).
        """
        sources = [pod.labels, pod.env]
        owner = _first_value(sources, _OWNER_KEYS)
        repository = _first_value(sources, _REPOSITORY_KEYS)
        branch = _first_value(sources, _BRANCH_KEYS)
        build = _first_value(sources, _BUILD_KEYS)
        if not (owner and repository and branch and build):
            return None
        return cls(
            owner=owner,
            repository=repository,
            branch=branch,
            build=build,
            status=_PHASE_TO_STATUS.get(pod.phase, BuildStatus.UNKNOWN),
            created_at=pod.created_at,
            pod=pod,
        )


class Stage(BaseModel):
    """A named phase of a pipeline run.

    ``pod_labels`` identifies the stage's pod among the pods of the run;
    ``pod`` stays ``None`` until the cluster has created that pod.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    parents: list[str] = []
    pod_labels: dict[str, str] = {}
    pod: PodSnapshot | None = None

    @property
    def name_including_parents(self) -> str:
        return " / ".join([*self.parents, self.name])


class PipelineRunBuild(BuildDescriptor):
    """A multi-stage pipeline run; stages are kept in declaration order."""

    kind: Literal["pipeline_run"] = "pipeline_run"
    pipeline_run: str
    stages: list[Stage] = []


AnyBuild = Annotated[
    Union[LegacyBuild, PipelineRunBuild], Field(discriminator="kind")
]


class Unit(BaseModel):
    """One (stage, container) visit in the global visiting order."""

    model_config = ConfigDict(frozen=True)

    display_name: str
    stage: str | None = None
    pod_name: str
    container_name: str
    container_index: int
