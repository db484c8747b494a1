import html
import re

from loguru import logger

from jenkins_mcp.clients.jenkins.mixins.base import JenkinsApiMixin
from jenkins_mcp.clients.jenkins.utils import bounded, job_path
from jenkins_mcp.exceptions.clients import (
    EmptyPipelineScriptError,
    NotAPipelineJobError,
    ScmPipelineScriptError,
)

INLINE_PIPELINE_MARKER = "org.jenkinsci.plugins.workflow.cps.CpsFlowDefinition"
SCM_PIPELINE_MARKER = "org.jenkinsci.plugins.workflow.cps.CpsScmFlowDefinition"
SCRIPT_PATTERN = re.compile(r"<script>([\s\S]*?)</script>")


def extract_pipeline_script(job_name: str, config_xml: str) -> str:
    """
    Pull the inline pipeline script out of a job's config.xml.

    This is marker matching over the document, not XML schema parsing: only the
    classic inline and SCM flow definitions are recognised.
    """
    if INLINE_PIPELINE_MARKER in config_xml:
        match = SCRIPT_PATTERN.search(config_xml)
        if match is None or not match.group(1).strip():
            raise EmptyPipelineScriptError(
                f"pipeline script block is empty or missing for job '{job_name}'"
            )
        return html.unescape(match.group(1))

    if SCM_PIPELINE_MARKER in config_xml:
        raise ScmPipelineScriptError(
            f"pipeline script of job '{job_name}' is loaded from SCM and not stored inline"
        )

    raise NotAPipelineJobError(f"job '{job_name}' is not a pipeline job")


class PipelineClientMixin(JenkinsApiMixin):
    @bounded("get_pipeline_script")
    async def get_pipeline_script(self, job_name: str) -> str:
        logger.info(f"Fetching pipeline script of {job_name}")
        response = await self._send_api_request(
            "GET",
            f"{job_path(job_name)}/config.xml",
            resource="job",
            key=job_name,
            headers={"Accept": "application/xml"},
        )
        return extract_pipeline_script(job_name, response.text)
