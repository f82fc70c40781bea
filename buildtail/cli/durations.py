"""Parse Go-style durations such as ``5m``, ``90s`` or ``1h30m``."""

from __future__ import annotations

import re

import typer

_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}
_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")


def parse_duration(text: str) -> float:
    """Return *text* as seconds; a bare number is taken as seconds."""
    text = text.strip()
    try:
        return float(text)
    except ValueError:
        pass

    pos = 0
    total = 0.0
    for match in _PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()
    if pos == 0 or pos != len(text):
        raise typer.BadParameter(f"invalid duration: {text!r} (expected e.g. 5m, 90s, 1h30m)")
    return total
