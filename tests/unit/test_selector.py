"""Tests for BuildSelector — exact, latest-per-pipeline, picking and waiting."""

from __future__ import annotations

import time

import pytest

from buildtail.core.catalog import load_catalog
from buildtail.core.errors import (
    BuildNotFoundError,
    EmptyCatalogError,
    MissingIdentifierError,
    ResolutionTimeoutError,
)
from buildtail.core.selector import PICK_PROMPT, BuildSelector, lookup


class FakePicker:
    def __init__(self, answer: str | None = None) -> None:
        self.answer = answer
        self.calls: list[tuple[list[str], str, str]] = []

    def pick(self, names, prompt, default=""):
        self.calls.append((list(names), prompt, default))
        return self.answer if self.answer is not None else default


@pytest.fixture
def pipeline_catalog(fake_query, namespace, make_pipeline_run):
    """Point the fake cluster at three runs and return a loader."""
    runs = [
        make_pipeline_run(branch="master", build="1", minutes=0),
        make_pipeline_run(branch="master", build="2", minutes=10),
        make_pipeline_run(branch="PR-4", build="1", minutes=20),
    ]
    fake_query.pipeline_runs = True
    fake_query.runs = {r.pipeline_run: r for r in runs}
    return lambda: load_catalog(fake_query, namespace)


class TestLookup:
    def test_exact_name_has_no_suffix(self, pipeline_catalog):
        build, suffix = lookup(pipeline_catalog(), "acme/app/master #1")
        assert build.build == "1"
        assert suffix == ""

    def test_bare_pipeline_resolves_latest(self, pipeline_catalog):
        build, suffix = lookup(pipeline_catalog(), "acme/app/master")
        assert build.build == "2"
        assert suffix == " #2"

    def test_unknown(self, pipeline_catalog):
        assert lookup(pipeline_catalog(), "acme/other/master") is None


class TestResolve:
    def test_exact(self, pipeline_catalog):
        resolution = BuildSelector(pipeline_catalog).resolve("acme/app/PR-4 #1")
        assert resolution.build.branch == "PR-4"
        assert resolution.label == "acme/app/PR-4 #1"
        assert resolution.picked is False

    def test_latest_label_carries_build_number(self, pipeline_catalog):
        resolution = BuildSelector(pipeline_catalog).resolve("acme/app/master")
        assert resolution.label == "acme/app/master #2"

    def test_not_found_without_wait(self, pipeline_catalog):
        with pytest.raises(BuildNotFoundError) as info:
            BuildSelector(pipeline_catalog).resolve("acme/nope/master")
        assert "acme/app/master #2" in info.value.names

    def test_empty_catalog_without_wait(self, fake_query, namespace):
        selector = BuildSelector(lambda: load_catalog(fake_query, namespace))
        with pytest.raises(EmptyCatalogError):
            selector.resolve("acme/app/master")

    def test_batch_mode_requires_identifier(self, pipeline_catalog):
        selector = BuildSelector(pipeline_catalog, picker=FakePicker())
        with pytest.raises(MissingIdentifierError):
            selector.resolve(None, interactive=False)

    def test_no_picker_requires_identifier(self, pipeline_catalog):
        with pytest.raises(MissingIdentifierError):
            BuildSelector(pipeline_catalog).resolve("")


class TestInteractive:
    def test_picker_gets_names_and_default(self, pipeline_catalog):
        picker = FakePicker()
        resolution = BuildSelector(pipeline_catalog, picker=picker).resolve(None)
        names, prompt, default = picker.calls[0]
        assert names == pipeline_catalog().names
        assert prompt == PICK_PROMPT
        assert default == "acme/app/master #2"
        assert resolution.picked is True
        assert resolution.build.build == "2"

    def test_picked_name_is_resolved(self, pipeline_catalog):
        picker = FakePicker("acme/app/PR-4 #1")
        resolution = BuildSelector(pipeline_catalog, picker=picker).resolve(None)
        assert resolution.build.branch == "PR-4"

    def test_picking_never_waits(self, pipeline_catalog):
        picker = FakePicker("acme/app/gone #9")
        selector = BuildSelector(pipeline_catalog, picker=picker, wait_timeout=60)
        with pytest.raises(BuildNotFoundError):
            selector.resolve(None, wait=True)


class TestWaiting:
    def test_appears_before_timeout(self, fake_query, namespace, make_pipeline_run):
        fake_query.pipeline_runs = True
        late = make_pipeline_run(branch="PR-9", build="1")
        loads = []

        def load():
            loads.append(1)
            if len(loads) == 3:
                fake_query.runs[late.pipeline_run] = late
            return load_catalog(fake_query, namespace)

        selector = BuildSelector(load, wait_timeout=5.0, interval=0.01)
        resolution = selector.resolve("acme/app/PR-9", wait=True)
        assert resolution.build.pipeline_run == late.pipeline_run
        assert resolution.label == "acme/app/PR-9 #1"
        assert len(loads) == 3

    def test_never_appears_times_out(self, pipeline_catalog):
        selector = BuildSelector(pipeline_catalog, wait_timeout=0.05, interval=0.01)
        start = time.monotonic()
        with pytest.raises(ResolutionTimeoutError) as info:
            selector.resolve("acme/app/never", wait=True)
        assert time.monotonic() - start >= 0.05
        assert info.value.elapsed >= 0.05
        # the last-seen catalog is part of the diagnosis
        assert isinstance(info.value.last_error, BuildNotFoundError)
        assert "acme/app/master #2" in str(info.value)

    def test_found_immediately_with_wait(self, pipeline_catalog):
        selector = BuildSelector(pipeline_catalog, wait_timeout=0.0)
        resolution = selector.resolve("acme/app/master #1", wait=True)
        assert resolution.build.build == "1"
