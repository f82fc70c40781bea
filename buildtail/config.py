"""Runtime configuration — env-driven via pydantic-settings.

Reads ``BUILDTAIL_*`` environment variables and an optional ``.env`` file.
Command-line flags override these values per invocation.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class TailConfig(BaseSettings):
    """Configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export BUILDTAIL_NAMESPACE=jx-staging
        export BUILDTAIL_LOG_LEVEL=DEBUG
        export BUILDTAIL_WAIT_TIMEOUT_SECONDS=600
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BUILDTAIL_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # Cluster access
    namespace: str = "jx"
    kube_context: str | None = None
    build_pod_selector: str = "build.knative.dev/buildName"
    tekton_api_version: str = "v1"
    pipeline_runs: bool | None = None  # None: detect from the cluster

    # Waiting
    wait_timeout_seconds: float = 300.0
    retry_interval_seconds: float = 2.0
    poll_interval_seconds: float = 1.0

    # Selection
    default_branch: str = "master"

    # Attempt logs of containers that never started in a failed pod
    stream_unstarted_on_failure: bool = True


# Module-level singleton; import as `from buildtail.config import config`
config = TailConfig()
