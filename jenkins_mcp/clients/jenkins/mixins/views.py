import re
from urllib.parse import quote
from xml.sax.saxutils import escape

from loguru import logger

from jenkins_mcp.clients.jenkins.decoders import decode_view_details, decode_views
from jenkins_mcp.clients.jenkins.mixins.base import JenkinsApiMixin
from jenkins_mcp.clients.jenkins.mixins.jobs import JOB_FIELDS
from jenkins_mcp.clients.jenkins.types import View, ViewDetails
from jenkins_mcp.clients.jenkins.utils import bounded
from jenkins_mcp.exceptions.clients import InvalidInputError

VIEW_FIELDS = "name,url,description"
VIEWS_TREE = f"views[{VIEW_FIELDS}]"
VIEW_DETAILS_TREE = f"{VIEW_FIELDS},jobs[{JOB_FIELDS}]"
DEFAULT_VIEW_TYPE = "hudson.model.ListView"
VIEW_TYPE_PATTERN = re.compile(r"^[A-Za-z_$][\w$]*(\.[A-Za-z_$][\w$]*)*$")

VIEW_CONFIG_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<{view_type}>
  <name>{name}</name>
  <description></description>
  <filterExecutors>false</filterExecutors>
  <filterQueue>false</filterQueue>
  <properties class="hudson.model.View$PropertyList"/>
  <jobNames>
    <comparator class="hudson.util.CaseInsensitiveComparator"/>
  </jobNames>
  <jobFilters/>
  <columns>
    <hudson.views.StatusColumn/>
    <hudson.views.WeatherColumn/>
    <hudson.views.JobColumn/>
    <hudson.views.LastSuccessColumn/>
    <hudson.views.LastFailureColumn/>
    <hudson.views.LastDurationColumn/>
    <hudson.views.BuildButtonColumn/>
  </columns>
</{view_type}>"""


def _validate_view_name(view_name: str) -> None:
    if not view_name or not view_name.strip():
        raise InvalidInputError("view name cannot be empty")


def _validate_view_type(view_type: str) -> None:
    if not VIEW_TYPE_PATTERN.match(view_type):
        raise InvalidInputError(
            "view type must be a Java class name", {"view_type": view_type}
        )


class ViewClientMixin(JenkinsApiMixin):
    @bounded("list_views")
    async def list_views(self) -> list[View]:
        logger.info("Listing Jenkins views")
        response = await self._send_api_request(
            "GET", "/api/json", resource="views", tree=VIEWS_TREE
        )
        return decode_views(response.content)

    @bounded("get_view")
    async def get_view(self, view_name: str) -> ViewDetails:
        _validate_view_name(view_name)
        logger.info(f"Fetching Jenkins view {view_name}")
        response = await self._send_api_request(
            "GET",
            f"/view/{quote(view_name, safe='')}/api/json",
            resource="view",
            key=view_name,
            tree=VIEW_DETAILS_TREE,
        )
        return decode_view_details(response.content)

    @bounded("create_view")
    async def create_view(
        self, view_name: str, view_type: str = DEFAULT_VIEW_TYPE
    ) -> None:
        _validate_view_name(view_name)
        view_type = view_type or DEFAULT_VIEW_TYPE
        _validate_view_type(view_type)
        logger.info(f"Creating Jenkins view {view_name} of type {view_type}")
        await self._send_api_request(
            "POST",
            "/createView",
            resource="view",
            key=view_name,
            params={"name": view_name},
            content=VIEW_CONFIG_TEMPLATE.format(
                view_type=view_type, name=escape(view_name)
            ),
            headers={"Content-Type": "application/xml"},
            accept_redirects=True,
        )
