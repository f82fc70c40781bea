"""Catalog model — the filtered, sorted and indexed set of builds."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from buildtail.models.builds import AnyBuild


class Catalog(BaseModel):
    """A frozen view of every build that passed the selection filter.

    ``names`` is in catalog sort order (newest first).  ``by_name`` maps
    display names to builds; ``latest_by_pipeline`` maps a bare pipeline
    name to its newest build.  ``errors`` records items that could not be
    read and were dropped from the catalog.
    """

    model_config = ConfigDict(frozen=True)

    names: list[str] = []
    default_name: str = ""
    by_name: dict[str, AnyBuild] = {}
    latest_by_pipeline: dict[str, AnyBuild] = {}
    errors: list[str] = []

    @property
    def builds(self) -> list[AnyBuild]:
        """Builds in catalog sort order."""
        return [self.by_name[name] for name in self.names]
