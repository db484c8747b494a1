"""MCP server exposing the Jenkins client operations as tools.

Every tool is a pass-through to a `JenkinsClientProtocol` operation, the result is
serialised to JSON and client errors are reported as MCP tool errors.
"""
import base64
import json
from contextlib import contextmanager
from typing import Any, Iterator

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from loguru import logger
from pydantic import BaseModel
from starlette.requests import Request
from starlette.responses import JSONResponse

from jenkins_mcp.clients.jenkins.protocol import JenkinsClientProtocol
from jenkins_mcp.clients.jenkins.types import JobDetails
from jenkins_mcp.exceptions.clients import JenkinsClientError
from jenkins_mcp.version import __version__

SERVER_NAME = "jenkins-mcp"
DEFAULT_LOG_SIZE_LIMIT = 1024 * 1024


def to_json(value: Any) -> str:
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True)
    elif isinstance(value, list):
        value = [
            item.model_dump(mode="json", by_alias=True)
            if isinstance(item, BaseModel)
            else item
            for item in value
        ]
    return json.dumps(value, indent=2)


@contextmanager
def tool_errors(tool_name: str) -> Iterator[None]:
    try:
        yield
    except JenkinsClientError as e:
        logger.warning(f"Tool {tool_name} failed: {e}")
        raise ToolError(str(e)) from e


def parameters_guidance(job: JobDetails) -> str:
    lines = [
        f"Job '{job.name}' requires parameters. Call jenkins_trigger_build again with"
        " a `parameters` object. Available parameters:"
    ]
    for parameter in job.parameters:
        line = f"- {parameter.name} ({parameter.type})"
        if parameter.default_value not in (None, ""):
            line += f", default: {parameter.default_value}"
        if parameter.description:
            line += f": {parameter.description}"
        lines.append(line)
    return "\n".join(lines)


def create_server(client: JenkinsClientProtocol) -> FastMCP:
    mcp: FastMCP = FastMCP(SERVER_NAME)

    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> JSONResponse:
        try:
            health = await client.server_health()
        except JenkinsClientError as e:
            return JSONResponse(
                {"status": "degraded", "error": str(e)}, status_code=503
            )
        return JSONResponse(
            {"status": "healthy", "jenkins": health.model_dump(by_alias=True)}
        )

    @mcp.tool
    async def jenkins_list_jobs(folder: str | None = None) -> str:
        """List Jenkins jobs, optionally inside a folder (e.g. `team/services`)."""
        with tool_errors("jenkins_list_jobs"):
            return to_json(await client.list_jobs(folder))

    @mcp.tool
    async def jenkins_get_job(job_name: str) -> str:
        """Get job details: last builds, parameter definitions and status."""
        with tool_errors("jenkins_get_job"):
            return to_json(await client.get_job(job_name))

    @mcp.tool
    async def jenkins_trigger_build(
        job_name: str, parameters: dict[str, Any] | None = None
    ) -> str:
        """Trigger a build of a job, returning its queue item.

        When the job is parameterized and no parameters are given, the parameter
        definitions are returned instead so they can be filled in.
        """
        with tool_errors("jenkins_trigger_build"):
            job = None
            if not parameters:
                job = await client.get_job(job_name)
                if job.is_parameterized:
                    return parameters_guidance(job)
            return to_json(await client.trigger_build(job_name, parameters, job=job))

    @mcp.tool
    async def jenkins_get_build(job_name: str, build_number: int | None = None) -> str:
        """Get a build of a job, the latest one when no build number is given."""
        with tool_errors("jenkins_get_build"):
            if build_number is None:
                return to_json(await client.get_latest_build(job_name))
            return to_json(await client.get_build(job_name, build_number))

    @mcp.tool
    async def jenkins_get_build_log(
        job_name: str, build_number: int, size_limit: int = DEFAULT_LOG_SIZE_LIMIT
    ) -> str:
        """Get the console output of a build, truncated to `size_limit` bytes (0 = all)."""
        with tool_errors("jenkins_get_build_log"):
            return await client.get_build_log(job_name, build_number, size_limit)

    @mcp.tool
    async def jenkins_get_running_builds() -> str:
        """List the builds currently running across all top level jobs."""
        with tool_errors("jenkins_get_running_builds"):
            return to_json(await client.get_running_builds())

    @mcp.tool
    async def jenkins_stop_build(job_name: str, build_number: int) -> str:
        """Abort a running build and confirm it was aborted."""
        with tool_errors("jenkins_stop_build"):
            return to_json(await client.stop_build(job_name, build_number))

    @mcp.tool
    async def jenkins_list_artifacts(job_name: str, build_number: int) -> str:
        """List the artifacts archived by a build."""
        with tool_errors("jenkins_list_artifacts"):
            return to_json(await client.list_artifacts(job_name, build_number))

    @mcp.tool
    async def jenkins_get_artifact(
        job_name: str, build_number: int, artifact_path: str, max_bytes: int = 0
    ) -> str:
        """Download an artifact. Text is returned as is, binary content base64 encoded."""
        with tool_errors("jenkins_get_artifact"):
            content = await client.get_artifact(
                job_name, build_number, artifact_path, max_bytes
            )
        try:
            return to_json(
                {"path": artifact_path, "encoding": "utf-8", "content": content.decode()}
            )
        except UnicodeDecodeError:
            return to_json(
                {
                    "path": artifact_path,
                    "encoding": "base64",
                    "content": base64.b64encode(content).decode("ascii"),
                }
            )

    @mcp.tool
    async def jenkins_get_queue() -> str:
        """List the items waiting in the build queue."""
        with tool_errors("jenkins_get_queue"):
            return to_json(await client.get_queue())

    @mcp.tool
    async def jenkins_get_queue_item(queue_id: int) -> str:
        """Get a queue item, e.g. the one returned by jenkins_trigger_build."""
        with tool_errors("jenkins_get_queue_item"):
            return to_json(await client.get_queue_item(queue_id))

    @mcp.tool
    async def jenkins_cancel_queue_item(queue_id: int) -> str:
        """Cancel a queued build before it starts."""
        with tool_errors("jenkins_cancel_queue_item"):
            await client.cancel_queue_item(queue_id)
        return to_json({"cancelled": True, "queueId": queue_id})

    @mcp.tool
    async def jenkins_list_views() -> str:
        """List the Jenkins views."""
        with tool_errors("jenkins_list_views"):
            return to_json(await client.list_views())

    @mcp.tool
    async def jenkins_get_view(view_name: str) -> str:
        """Get a view and the jobs it contains."""
        with tool_errors("jenkins_get_view"):
            return to_json(await client.get_view(view_name))

    @mcp.tool
    async def jenkins_create_view(
        view_name: str, view_type: str = "hudson.model.ListView"
    ) -> str:
        """Create an empty view."""
        with tool_errors("jenkins_create_view"):
            await client.create_view(view_name, view_type)
        return to_json({"created": True, "name": view_name, "type": view_type})

    @mcp.tool
    async def jenkins_list_nodes() -> str:
        """List the build nodes (agents) and their availability."""
        with tool_errors("jenkins_list_nodes"):
            return to_json(await client.get_nodes())

    @mcp.tool
    async def jenkins_get_pipeline_script(job_name: str) -> str:
        """Get the inline script of a pipeline job."""
        with tool_errors("jenkins_get_pipeline_script"):
            return await client.get_pipeline_script(job_name)

    @mcp.tool
    async def jenkins_server_health() -> str:
        """Check that Jenkins is reachable and report its version."""
        with tool_errors("jenkins_server_health"):
            return to_json(await client.server_health())

    logger.info(f"Created {SERVER_NAME} {__version__} MCP server")
    return mcp
