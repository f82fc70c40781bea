"""Error taxonomy for build resolution and log traversal.

Every error raised by buildtail derives from :class:`BuildTailError`, so
the CLI can report any terminal failure uniformly.  Upstream containers
that exit non-zero are *not* errors; they surface as warnings.
"""

from __future__ import annotations


class BuildTailError(RuntimeError):
    """Base class for all buildtail errors."""


class EmptyCatalogError(BuildTailError):
    """Raised when no builds match the selection filter."""


class BuildNotFoundError(BuildTailError):
    """Raised when an identifier matches neither catalog index."""

    def __init__(self, identifier: str, names: list[str]) -> None:
        self.identifier = identifier
        self.names = list(names)
        super().__init__(
            f"No pipeline found for name {identifier} in values: {', '.join(names)}"
        )


class MissingIdentifierError(BuildTailError):
    """Raised in batch mode when no build identifier was supplied."""


class QueryFailure(BuildTailError):
    """Raised when a cluster read fails; ``subject`` names the object."""

    def __init__(self, subject: str, cause: object) -> None:
        self.subject = subject
        self.cause = cause
        super().__init__(f"failed to read {subject}: {cause}")


class WaitTimeoutError(BuildTailError):
    """Raised when a bounded wait runs out of time."""

    def __init__(
        self,
        subject: str,
        elapsed: float,
        last_error: Exception | None = None,
    ) -> None:
        self.subject = subject
        self.elapsed = elapsed
        self.last_error = last_error
        message = f"timed out after {elapsed:.1f}s waiting for {subject}"
        if last_error is not None:
            message += f": {last_error}"
        super().__init__(message)


class ResolutionTimeoutError(WaitTimeoutError):
    """Raised when a build identifier never appeared in the catalog."""


class StagePodTimeoutError(WaitTimeoutError):
    """Raised when a pipeline stage's pod was never created."""


class NoInitContainersError(BuildTailError):
    """Raised when a build or stage pod has no init containers to visit."""

    def __init__(self, pod_name: str, build: str) -> None:
        self.pod_name = pod_name
        self.build = build
        super().__init__(f"No InitContainers for Pod {pod_name} for build: {build}")


class WaitCancelledError(BuildTailError):
    """Raised when a caller-supplied stop event interrupts a wait."""


class GitRemoteError(BuildTailError):
    """Raised when the working folder's repository cannot be identified."""
