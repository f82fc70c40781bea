"""Identify the repository of the current working folder from its git remote."""

from __future__ import annotations

import re
import subprocess
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from buildtail.core.errors import GitRemoteError

# https://host/owner/repo(.git), ssh://git@host[:port]/owner/repo(.git),
# git@host:owner/repo(.git)
_URL_PATTERN = re.compile(
    r"^(?:[a-z+]+://)?(?:[^@/]+@)?[^/:]+(?::\d+)?[/:]"
    r"(?P<path>.+?)(?:\.git)?/?$"
)


class GitRepository(BaseModel):
    """Owner (organisation or user) and name of a hosted repository."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str


def parse_remote_url(url: str) -> GitRepository:
    """Extract owner and repository name from a git remote URL."""
    match = _URL_PATTERN.match(url.strip())
    if not match:
        raise GitRemoteError(f"cannot parse git remote URL: {url}")
    parts = [part for part in match.group("path").split("/") if part]
    if len(parts) < 2:
        raise GitRemoteError(f"git remote URL has no owner/repository: {url}")
    return GitRepository(owner=parts[-2], name=parts[-1])


def repository_from_folder(folder: Path | None = None) -> GitRepository:
    """Return the repository whose ``origin`` remote *folder* tracks."""
    folder = folder or Path.cwd()
    try:
        result = subprocess.run(
            ["git", "config", "--get", "remote.origin.url"],
            cwd=folder,
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (subprocess.SubprocessError, OSError) as exc:
        raise GitRemoteError(f"failed to run git in {folder}: {exc}") from exc
    url = result.stdout.strip()
    if result.returncode != 0 or not url:
        raise GitRemoteError(f"no origin remote found for {folder}")
    return parse_remote_url(url)
