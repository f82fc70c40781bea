"""buildtail: ordered log streaming for Kubernetes builds and pipeline runs.

Resolves a build identifier (``owner/repo/branch #N`` or a bare pipeline
name) to a legacy build pod or a multi-stage pipeline run, then streams
the log of every init container in the order the build executes them.
"""

__version__ = "0.1.0"

from buildtail.core.catalog import load_catalog
from buildtail.core.selector import BuildSelector, Resolution
from buildtail.core.streamer import BuildLogStreamer
from buildtail.cli.app import app as cli

__all__ = ["load_catalog", "BuildSelector", "Resolution", "BuildLogStreamer", "cli", "__version__"]
