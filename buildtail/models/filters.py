"""Selection filter used to narrow the build catalog."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from buildtail.models.builds import BuildDescriptor, parse_build_number

LATEST_BUILD = "latest"


class BuildFilter(BaseModel):
    """Conjunctive predicate over build descriptors.

    Empty fields are unconstrained.  ``build`` may be empty, ``"latest"``
    or a literal build number; ``filter`` is a case-insensitive substring
    of the display name.
    """

    model_config = ConfigDict(frozen=True)

    pending: bool = False
    filter: str = ""
    owner: str = ""
    repository: str = ""
    branch: str = ""
    build: str = ""

    def build_number(self) -> int:
        """The requested build number, or 0 for unspecified/latest."""
        return parse_build_number(self.build)

    def matches(self, build: BuildDescriptor) -> bool:
        if self.owner and self.owner != build.owner:
            return False
        if self.repository and self.repository != build.repository:
            return False
        if self.branch and self.branch != build.branch:
            return False
        if self.build and self.build != LATEST_BUILD and self.build != build.build:
            return False
        if self.filter and self.filter.lower() not in build.display_name.lower():
            return False
        if self.pending and not build.status.is_pending:
            return False
        return True
