from typing import Any

import httpx
from loguru import logger

from jenkins_mcp.clients.jenkins.crumb import CrumbIssuer
from jenkins_mcp.clients.jenkins.utils import (
    handle_jenkins_status_code,
    map_transport_error,
)


class JenkinsApiMixin:
    def __init__(
        self, client: httpx.AsyncClient, crumb_issuer: CrumbIssuer, base_url: str
    ):
        self.client = client
        self.crumb_issuer = crumb_issuer
        self.base_url = base_url

    async def _send_api_request(
        self,
        method: str,
        path: str,
        *,
        resource: str,
        key: Any = None,
        params: dict[str, Any] | None = None,
        tree: str | None = None,
        content: bytes | str | None = None,
        headers: dict[str, str] | None = None,
        accept_redirects: bool = False,
        stream: bool = False,
    ) -> httpx.Response:
        request_params = dict(params or {})
        if tree:
            request_params["tree"] = tree
        request_headers = {"Accept": "application/json", **(headers or {})}
        if method != "GET":
            request_headers.update(await self.crumb_issuer.headers())

        request = self.client.build_request(
            method,
            f"{self.base_url}{path}",
            params=request_params or None,
            content=content,
            headers=request_headers,
        )
        logger.debug(f"Sending request {method} {request.url}")
        try:
            response = await self.client.send(request, stream=stream)
        except httpx.HTTPError as e:
            raise map_transport_error(e, f"{method} {path}") from e

        if stream and not (
            response.is_success or (accept_redirects and response.is_redirect)
        ):
            # The error body is needed for diagnostics
            await response.aread()
            await response.aclose()

        handle_jenkins_status_code(response, resource, key, accept_redirects)
        return response
