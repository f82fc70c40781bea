"""buildtail data models — all Pydantic v2, all frozen (immutable)."""

from buildtail.models.builds import (
    AnyBuild,
    BuildDescriptor,
    BuildStatus,
    LegacyBuild,
    PipelineRunBuild,
    Stage,
    Unit,
    parse_build_number,
)
from buildtail.models.catalog import Catalog
from buildtail.models.filters import LATEST_BUILD, BuildFilter
from buildtail.models.pods import (
    ContainerTermination,
    InitContainerStatus,
    PodPhase,
    PodSnapshot,
)

__all__ = [
    # pods
    "PodPhase",
    "ContainerTermination",
    "InitContainerStatus",
    "PodSnapshot",
    # builds
    "BuildStatus",
    "BuildDescriptor",
    "LegacyBuild",
    "PipelineRunBuild",
    "Stage",
    "Unit",
    "AnyBuild",
    "parse_build_number",
    # filters
    "LATEST_BUILD",
    "BuildFilter",
    # catalog
    "Catalog",
]
