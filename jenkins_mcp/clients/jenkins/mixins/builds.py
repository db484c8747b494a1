import asyncio
from typing import Any

import httpx
from loguru import logger

from jenkins_mcp.clients.jenkins.crumb import CrumbIssuer
from jenkins_mcp.clients.jenkins.decoders import (
    decode_build,
    decode_latest_build,
    extract_queue_id,
)
from jenkins_mcp.clients.jenkins.mixins.jobs import JobClientMixin
from jenkins_mcp.clients.jenkins.types import (
    Build,
    BuildResult,
    Job,
    JobDetails,
    QueueItem,
    RunningBuild,
)
from jenkins_mcp.clients.jenkins.utils import (
    bounded,
    job_path,
    validate_build_number,
    validate_job_name,
)
from jenkins_mcp.exceptions.clients import (
    BuildNotRunningError,
    BuildStillRunningError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
    ProtocolAmbiguityError,
    UnexpectedBuildStateError,
)
from jenkins_mcp.helpers.stream import Stream

BUILD_FIELDS = (
    "number,url,result,building,duration,timestamp,executor[number],estimatedDuration"
)
BUILD_TREE = BUILD_FIELDS
LATEST_BUILD_TREE = f"lastBuild[{BUILD_FIELDS}]"

DEFAULT_STOP_SETTLE_DELAY = 0.5
DEFAULT_RUNNING_BUILDS_CONCURRENCY = 10

QUEUE_CORRELATION_HINTS = [
    "Jenkins redirected the request to an authentication page (e.g. MFA or SSO)",
    "the API token is invalid or expired",
    "a reverse proxy stripped the Location header",
    "the build was not actually triggered",
]


def _stringify_parameter(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_key(job_name: str, build_number: int | str) -> str:
    return f"{job_name}#{build_number}"


class BuildClientMixin(JobClientMixin):
    def __init__(
        self,
        client: httpx.AsyncClient,
        crumb_issuer: CrumbIssuer,
        base_url: str,
        stop_settle_delay: float = DEFAULT_STOP_SETTLE_DELAY,
        running_builds_concurrency: int = DEFAULT_RUNNING_BUILDS_CONCURRENCY,
    ):
        super().__init__(client, crumb_issuer, base_url)
        self.stop_settle_delay = stop_settle_delay
        self.running_builds_concurrency = running_builds_concurrency

    def _build_path(self, job_name: str, build_number: int) -> str:
        validate_build_number(build_number)
        return f"{job_path(job_name)}/{build_number}"

    @bounded("get_build")
    async def get_build(self, job_name: str, build_number: int) -> Build:
        logger.debug(f"Fetching build {build_key(job_name, build_number)}")
        response = await self._send_api_request(
            "GET",
            f"{self._build_path(job_name, build_number)}/api/json",
            resource="build",
            key=build_key(job_name, build_number),
            tree=BUILD_TREE,
        )
        return decode_build(response.content)

    @bounded("get_latest_build")
    async def get_latest_build(self, job_name: str) -> Build:
        logger.debug(f"Fetching latest build of {job_name}")
        response = await self._send_api_request(
            "GET",
            f"{job_path(job_name)}/api/json",
            resource="job",
            key=job_name,
            tree=LATEST_BUILD_TREE,
        )
        build = decode_latest_build(response.content)
        if build is None:
            raise NotFoundError("build", build_key(job_name, "lastBuild"))
        return build

    @bounded("get_build_log")
    async def get_build_log(
        self, job_name: str, build_number: int, size_limit: int = 0
    ) -> str:
        """
        Fetch the console output of a build.

        A positive `size_limit` stops reading after that many bytes, so huge logs are never
        buffered entirely. ANSI sequences are kept as Jenkins returns them.
        """
        if size_limit < 0:
            raise InvalidInputError(
                "size limit cannot be negative", {"size_limit": size_limit}
            )
        logger.info(f"Fetching console log of {build_key(job_name, build_number)}")
        response = await self._send_api_request(
            "GET",
            f"{self._build_path(job_name, build_number)}/consoleText",
            resource="build",
            key=build_key(job_name, build_number),
            headers={"Accept": "text/plain"},
            stream=True,
        )
        stream = Stream(response)
        try:
            content = await stream.read(max_bytes=size_limit)
        finally:
            await stream.aclose()
        return content.decode("utf-8", errors="replace")

    @bounded("trigger_build")
    async def trigger_build(
        self,
        job_name: str,
        parameters: dict[str, Any] | None = None,
        *,
        job: JobDetails | None = None,
    ) -> QueueItem:
        validate_job_name(job_name)
        if job is None:
            job = await self.get_job(job_name)

        query: dict[str, str] = {}
        if parameters:
            defined = {parameter.name for parameter in job.parameters}
            for name in parameters:
                if name not in defined:
                    raise InvalidInputError(
                        f"invalid parameter '{name}' for job '{job_name}'",
                        {"parameter": name, "valid_parameters": sorted(defined)},
                    )
            query = {name: _stringify_parameter(value) for name, value in parameters.items()}
            endpoint = "buildWithParameters"
        else:
            endpoint = "build"

        logger.info(f"Triggering build of {job_name} with parameters: {sorted(query)}")
        response = await self._send_api_request(
            "POST",
            f"{job_path(job_name)}/{endpoint}",
            resource="job",
            key=job_name,
            params=query,
            accept_redirects=True,
        )

        queue_id = extract_queue_id(response.headers.get("Location"), response.content)
        if queue_id is None:
            logger.error(
                f"Could not find the queue item of the triggered build of {job_name},"
                f" status code: {response.status_code}"
            )
            raise ProtocolAmbiguityError(
                f"build of '{job_name}' was requested but no queue item could be correlated",
                QUEUE_CORRELATION_HINTS,
            )

        logger.info(f"Build of {job_name} queued with queue id {queue_id}")
        return QueueItem(id=queue_id, job_name=job_name, parameters=query)

    @bounded("stop_build")
    async def stop_build(self, job_name: str, build_number: int) -> Build:
        key = build_key(job_name, build_number)
        build = await self.get_build(job_name, build_number)
        if not build.building:
            raise BuildNotRunningError(job_name, build_number, build.result)

        logger.info(f"Stopping build {key}")
        await self._send_api_request(
            "POST",
            f"{self._build_path(job_name, build_number)}/stop",
            resource="build",
            key=key,
            accept_redirects=True,
        )

        await asyncio.sleep(self.stop_settle_delay)
        build = await self.get_build(job_name, build_number)
        if build.building:
            raise BuildStillRunningError(job_name, build_number)
        if build.result != BuildResult.ABORTED:
            raise UnexpectedBuildStateError(job_name, build_number, build.result)

        logger.info(f"Build {key} was aborted")
        return build

    async def _running_build_of(
        self, job: Job, semaphore: asyncio.Semaphore
    ) -> RunningBuild | None:
        async with semaphore:
            try:
                build = await self.get_latest_build(job.name)
            except NotFoundError as e:
                if e.resource == "job":
                    logger.warning(f"Job {job.name} disappeared during the scan, skipping")
                return None
            except PermissionDeniedError:
                logger.warning(f"No permission to read builds of {job.name}, skipping")
                return None

        if not build.building:
            return None
        return RunningBuild(
            job_name=job.name,
            build_number=build.number,
            url=build.url,
            timestamp=build.timestamp,
            estimated_duration=build.estimated_duration,
            executor=build.executor,
        )

    @bounded("get_running_builds")
    async def get_running_builds(self) -> list[RunningBuild]:
        jobs = await self.list_jobs()
        logger.info(f"Scanning {len(jobs)} jobs for running builds")
        semaphore = asyncio.Semaphore(self.running_builds_concurrency)
        # the first failure cancels the lookups still in flight
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [
                    tg.create_task(self._running_build_of(job, semaphore))
                    for job in jobs
                ]
        except ExceptionGroup as group:
            raise group.exceptions[0]
        results = [task.result() for task in tasks]
        return [running for running in results if running is not None]
