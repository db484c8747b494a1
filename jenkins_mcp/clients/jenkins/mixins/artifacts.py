from contextlib import asynccontextmanager
from typing import AsyncIterator
from urllib.parse import quote

import httpx
from loguru import logger

from jenkins_mcp.clients.jenkins.decoders import decode_artifacts
from jenkins_mcp.clients.jenkins.mixins.base import JenkinsApiMixin
from jenkins_mcp.clients.jenkins.types import Artifact
from jenkins_mcp.clients.jenkins.utils import (
    bounded,
    job_path,
    validate_build_number,
)
from jenkins_mcp.exceptions.clients import InvalidInputError
from jenkins_mcp.helpers.stream import Stream

ARTIFACTS_TREE = "artifacts[fileName,relativePath,size]"


class ArtifactClientMixin(JenkinsApiMixin):
    @bounded("list_artifacts")
    async def list_artifacts(self, job_name: str, build_number: int) -> list[Artifact]:
        validate_build_number(build_number)
        logger.info(f"Listing artifacts of {job_name}#{build_number}")
        response = await self._send_api_request(
            "GET",
            f"{job_path(job_name)}/{build_number}/api/json",
            resource="build",
            key=f"{job_name}#{build_number}",
            tree=ARTIFACTS_TREE,
        )
        return decode_artifacts(response.content)

    @bounded("stream_artifact")
    async def _open_artifact(
        self, job_name: str, build_number: int, artifact_path: str
    ) -> httpx.Response:
        return await self._send_api_request(
            "GET",
            f"{job_path(job_name)}/{build_number}/artifact/"
            f"{quote(artifact_path.strip('/'), safe='/')}",
            resource="artifact",
            key=artifact_path,
            headers={"Accept": "*/*"},
            stream=True,
        )

    @asynccontextmanager
    async def stream_artifact(
        self,
        job_name: str,
        build_number: int,
        artifact_path: str,
        *,
        timeout: float | None = None,
    ) -> AsyncIterator[Stream]:
        """
        Open an artifact download, the body is streamed and never decoded.

        `timeout` bounds opening the download, reading the body is up to the caller.
        """
        validate_build_number(build_number)
        if not artifact_path or not artifact_path.strip("/"):
            raise InvalidInputError("artifact path cannot be empty")

        logger.info(f"Downloading artifact {artifact_path} of {job_name}#{build_number}")
        response = await self._open_artifact(
            job_name, build_number, artifact_path, timeout=timeout
        )
        stream = Stream(response)
        try:
            yield stream
        finally:
            await stream.aclose()

    @bounded("get_artifact")
    async def get_artifact(
        self,
        job_name: str,
        build_number: int,
        artifact_path: str,
        max_bytes: int = 0,
    ) -> bytes:
        async with self.stream_artifact(job_name, build_number, artifact_path) as stream:
            return await stream.read(max_bytes=max_bytes)
