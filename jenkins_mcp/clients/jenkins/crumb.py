import httpx
from loguru import logger

from jenkins_mcp.clients.jenkins.decoders import decode_crumb
from jenkins_mcp.clients.jenkins.utils import map_transport_error
from jenkins_mcp.exceptions.clients import (
    CrumbError,
    DecodeError,
    JenkinsClientError,
)

CRUMB_ISSUER_PATH = "/crumbIssuer/api/json"


class CrumbIssuer:
    """
    Fetches the CSRF protection crumb required by Jenkins on mutating requests.

    A 404 from the issuer means CSRF protection is disabled. Any other failure either
    raises (`strict`) or is logged and the mutation is sent without a crumb.
    """

    def __init__(self, client: httpx.AsyncClient, base_url: str, strict: bool = False):
        self.client = client
        self.base_url = base_url
        self.strict = strict

    async def headers(self) -> dict[str, str]:
        try:
            return await self._fetch_crumb_headers()
        except JenkinsClientError as e:
            if self.strict:
                raise
            logger.warning(
                f"Failed to fetch the Jenkins crumb, sending the request without it: {e}"
            )
            return {}

    async def _fetch_crumb_headers(self) -> dict[str, str]:
        url = f"{self.base_url}{CRUMB_ISSUER_PATH}"
        try:
            response = await self.client.get(
                url, headers={"Accept": "application/json"}
            )
        except httpx.HTTPError as e:
            raise map_transport_error(e, f"GET {CRUMB_ISSUER_PATH}") from e

        if response.status_code == 404:
            logger.debug("Jenkins crumb issuer not found, CSRF protection is disabled")
            return {}
        if response.status_code != 200:
            raise CrumbError(
                f"crumb issuer returned status code {response.status_code}",
                {"status_code": response.status_code, "body": response.text},
            )

        try:
            crumb = decode_crumb(response.content)
        except DecodeError as e:
            raise CrumbError(f"invalid crumb issuer response: {e.message}") from e
        logger.debug(f"Fetched Jenkins crumb for header {crumb.crumb_request_field}")
        return crumb.header
