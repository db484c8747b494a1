from loguru import logger

from jenkins_mcp.clients.jenkins.decoders import decode_job_details, decode_jobs
from jenkins_mcp.clients.jenkins.mixins.base import JenkinsApiMixin
from jenkins_mcp.clients.jenkins.types import Job, JobDetails
from jenkins_mcp.clients.jenkins.utils import bounded, job_path

JOB_FIELDS = "name,url,description,buildable,inQueue,color"
JOBS_TREE = f"jobs[{JOB_FIELDS}]"
JOB_DETAILS_TREE = (
    f"{JOB_FIELDS},disabled,"
    "lastBuild[number,url],lastSuccessfulBuild[number,url],lastFailedBuild[number,url],"
    "property[parameterDefinitions[name,type,defaultParameterValue[value],description]]"
)


class JobClientMixin(JenkinsApiMixin):
    @bounded("list_jobs")
    async def list_jobs(self, folder: str | None = None) -> list[Job]:
        if folder:
            logger.info(f"Listing Jenkins jobs in folder {folder}")
            path = f"{job_path(folder)}/api/json"
        else:
            logger.info("Listing Jenkins jobs")
            path = "/api/json"
        response = await self._send_api_request(
            "GET", path, resource="folder", key=folder, tree=JOBS_TREE
        )
        return decode_jobs(response.content)

    @bounded("get_job")
    async def get_job(self, job_name: str) -> JobDetails:
        logger.info(f"Fetching Jenkins job {job_name}")
        response = await self._send_api_request(
            "GET",
            f"{job_path(job_name)}/api/json",
            resource="job",
            key=job_name,
            tree=JOB_DETAILS_TREE,
        )
        return decode_job_details(response.content)
