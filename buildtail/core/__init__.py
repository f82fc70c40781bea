"""Build resolution and ordered log traversal.

Modules
-------
catalog
    ``load_catalog`` reads, filters, sorts and indexes the builds.
selector
    ``BuildSelector`` maps an identifier to a build, waiting if asked.
walker
    ``walk_units`` yields the (stage, container) visiting order.
readiness
    ``await_start`` and ``check_previous_failure``.
streamer
    ``BuildLogStreamer`` ties the above together per unit.
retry
    ``retry_until`` — the bounded wait used for creation waits.
"""
