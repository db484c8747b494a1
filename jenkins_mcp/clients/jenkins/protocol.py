from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol, runtime_checkable

from jenkins_mcp.clients.jenkins.types import (
    Artifact,
    Build,
    Job,
    JobDetails,
    Node,
    QueueItem,
    RunningBuild,
    ServerHealth,
    View,
    ViewDetails,
)
from jenkins_mcp.helpers.stream import Stream


@runtime_checkable
class JenkinsClientProtocol(Protocol):
    """
    The capability set of a Jenkins client.

    Every operation accepts a keyword-only `timeout` (seconds) bounding the whole call,
    `stream_artifact` bounds opening the download only.
    The tool layer only depends on this protocol, so mocked or multi-instance clients can
    be swapped in.
    """

    async def list_jobs(
        self, folder: str | None = None, *, timeout: float | None = None
    ) -> list[Job]: ...

    async def get_job(
        self, job_name: str, *, timeout: float | None = None
    ) -> JobDetails: ...

    async def trigger_build(
        self,
        job_name: str,
        parameters: dict[str, Any] | None = None,
        *,
        job: JobDetails | None = None,
        timeout: float | None = None,
    ) -> QueueItem: ...

    async def get_build(
        self, job_name: str, build_number: int, *, timeout: float | None = None
    ) -> Build: ...

    async def get_latest_build(
        self, job_name: str, *, timeout: float | None = None
    ) -> Build: ...

    async def stop_build(
        self, job_name: str, build_number: int, *, timeout: float | None = None
    ) -> Build: ...

    async def get_build_log(
        self,
        job_name: str,
        build_number: int,
        size_limit: int = 0,
        *,
        timeout: float | None = None,
    ) -> str: ...

    async def get_running_builds(
        self, *, timeout: float | None = None
    ) -> list[RunningBuild]: ...

    async def list_artifacts(
        self, job_name: str, build_number: int, *, timeout: float | None = None
    ) -> list[Artifact]: ...

    async def get_artifact(
        self,
        job_name: str,
        build_number: int,
        artifact_path: str,
        max_bytes: int = 0,
        *,
        timeout: float | None = None,
    ) -> bytes: ...

    def stream_artifact(
        self,
        job_name: str,
        build_number: int,
        artifact_path: str,
        *,
        timeout: float | None = None,
    ) -> AbstractAsyncContextManager[Stream]: ...

    async def get_queue(self, *, timeout: float | None = None) -> list[QueueItem]: ...

    async def get_queue_item(
        self, queue_id: int, *, timeout: float | None = None
    ) -> QueueItem: ...

    async def cancel_queue_item(
        self, queue_id: int, *, timeout: float | None = None
    ) -> None: ...

    async def list_views(self, *, timeout: float | None = None) -> list[View]: ...

    async def get_view(
        self, view_name: str, *, timeout: float | None = None
    ) -> ViewDetails: ...

    async def create_view(
        self,
        view_name: str,
        view_type: str = "hudson.model.ListView",
        *,
        timeout: float | None = None,
    ) -> None: ...

    async def get_nodes(self, *, timeout: float | None = None) -> list[Node]: ...

    async def get_pipeline_script(
        self, job_name: str, *, timeout: float | None = None
    ) -> str: ...

    async def server_health(self, *, timeout: float | None = None) -> ServerHealth: ...

    async def aclose(self) -> None: ...
