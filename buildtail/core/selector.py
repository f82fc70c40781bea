"""Selector — turns a user-supplied identifier into a concrete build."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

from buildtail.cluster.query import InteractivePicker
from buildtail.core.errors import (
    BuildNotFoundError,
    EmptyCatalogError,
    MissingIdentifierError,
    QueryFailure,
    ResolutionTimeoutError,
)
from buildtail.core.retry import retry_until
from buildtail.models.builds import AnyBuild
from buildtail.models.catalog import Catalog

logger = logging.getLogger(__name__)

PICK_PROMPT = "Which build do you want to view the logs of?"


class Resolution(BaseModel):
    """The outcome of resolving an identifier.

    ``suffix`` is ``" #<build>"`` when a bare pipeline name was resolved
    to its newest build, so log headers still name the exact build.
    """

    model_config = ConfigDict(frozen=True)

    identifier: str
    build: AnyBuild
    suffix: str = ""
    picked: bool = False

    @property
    def label(self) -> str:
        return self.identifier + self.suffix


def lookup(catalog: Catalog, identifier: str) -> tuple[AnyBuild, str] | None:
    """Find *identifier* by display name, then by bare pipeline name."""
    build = catalog.by_name.get(identifier)
    if build is not None:
        return build, ""
    build = catalog.latest_by_pipeline.get(identifier)
    if build is not None:
        return build, f" #{build.build}"
    return None


class BuildSelector:
    """Resolves identifiers against freshly loaded catalogs.

    Parameters
    ----------
    load:
        Zero-argument callable returning a fresh ``Catalog``; called once
        per resolution attempt so every attempt sees current cluster state.
    picker:
        Used when no identifier is given and interaction is allowed.
    wait_timeout:
        Upper bound, in seconds, on waiting for a build to appear.
    interval:
        Delay between catalog reloads while waiting.
    """

    def __init__(
        self,
        load: Callable[[], Catalog],
        *,
        picker: InteractivePicker | None = None,
        wait_timeout: float = 300.0,
        interval: float = 2.0,
        stop: threading.Event | None = None,
    ) -> None:
        self._load = load
        self._picker = picker
        self._wait_timeout = wait_timeout
        self._interval = interval
        self._stop = stop

    def resolve(
        self,
        identifier: str | None,
        *,
        wait: bool = False,
        interactive: bool = True,
    ) -> Resolution:
        """Resolve *identifier* (or ask the user for one).

        Raises
        ------
        MissingIdentifierError
            No identifier in non-interactive mode.
        EmptyCatalogError, QueryFailure
            The catalog could not be loaded (when not waiting).
        BuildNotFoundError
            Unknown identifier and *wait* is False.
        ResolutionTimeoutError
            Unknown identifier and it did not appear within the timeout.
        """
        if not identifier:
            if not interactive or self._picker is None:
                raise MissingIdentifierError("missing argument: pipeline")
            return self._pick()

        if wait:
            try:
                catalog = self._load()
            except (EmptyCatalogError, QueryFailure) as exc:
                logger.debug("initial catalog load failed: %s", exc)
            else:
                found = lookup(catalog, identifier)
                if found is not None:
                    return Resolution(identifier=identifier, build=found[0], suffix=found[1])
            return self._wait_for(identifier)

        catalog = self._load()
        found = lookup(catalog, identifier)
        if found is None:
            raise BuildNotFoundError(identifier, catalog.names)
        return Resolution(identifier=identifier, build=found[0], suffix=found[1])

    def _pick(self) -> Resolution:
        assert self._picker is not None
        catalog = self._load()
        name = self._picker.pick(catalog.names, PICK_PROMPT, catalog.default_name)
        found = lookup(catalog, name)
        if found is None:
            raise BuildNotFoundError(name, catalog.names)
        return Resolution(identifier=name, build=found[0], suffix=found[1], picked=True)

    def _wait_for(self, identifier: str) -> Resolution:
        logger.info("waiting for pipeline %s to start...", identifier)

        def attempt() -> Resolution | None:
            catalog = self._load()
            found = lookup(catalog, identifier)
            if found is None:
                logger.info("no build found in: %s", ", ".join(catalog.names))
                raise BuildNotFoundError(identifier, catalog.names)
            return Resolution(identifier=identifier, build=found[0], suffix=found[1])

        return retry_until(
            attempt,
            subject=f"pipeline {identifier}",
            interval=self._interval,
            timeout=self._wait_timeout,
            error_cls=ResolutionTimeoutError,
            retry_on=(BuildNotFoundError, EmptyCatalogError, QueryFailure),
            stop=self._stop,
        )
