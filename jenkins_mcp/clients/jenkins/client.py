import ssl
from types import TracebackType
from typing import TYPE_CHECKING, Self

import httpx
from loguru import logger

from jenkins_mcp.clients.jenkins.authentication import JenkinsAuthentication
from jenkins_mcp.clients.jenkins.crumb import CrumbIssuer
from jenkins_mcp.clients.jenkins.mixins.artifacts import ArtifactClientMixin
from jenkins_mcp.clients.jenkins.mixins.builds import (
    DEFAULT_STOP_SETTLE_DELAY,
    BuildClientMixin,
)
from jenkins_mcp.clients.jenkins.mixins.nodes import NodeClientMixin
from jenkins_mcp.clients.jenkins.mixins.pipeline import PipelineClientMixin
from jenkins_mcp.clients.jenkins.mixins.queue import QueueClientMixin
from jenkins_mcp.clients.jenkins.mixins.views import ViewClientMixin
from jenkins_mcp.helpers.async_client import JenkinsAsyncClient
from jenkins_mcp.helpers.retry import RetryConfig
from jenkins_mcp.helpers.ssl import get_ssl_context

if TYPE_CHECKING:
    from jenkins_mcp.config.settings import JenkinsSettings

DEFAULT_TIMEOUT = 30.0


class JenkinsClient(
    BuildClientMixin,
    ArtifactClientMixin,
    QueueClientMixin,
    ViewClientMixin,
    NodeClientMixin,
    PipelineClientMixin,
):
    def __init__(
        self,
        base_url: str,
        username: str | None = None,
        password: str | None = None,
        api_token: str | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        retry_config: RetryConfig | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify: ssl.SSLContext | bool = True,
        crumb_strict: bool = False,
        stop_settle_delay: float = DEFAULT_STOP_SETTLE_DELAY,
    ):
        self.auth = JenkinsAuthentication(username, password, api_token)
        self._owns_client = http_client is None
        if http_client is None:
            http_client = JenkinsAsyncClient(
                retry_config=retry_config or RetryConfig(),
                auth=self.auth,
                timeout=httpx.Timeout(timeout),
                verify=verify,
            )
        else:
            http_client.auth = self.auth

        base_url = base_url.rstrip("/")
        crumb_issuer = CrumbIssuer(http_client, base_url, strict=crumb_strict)
        BuildClientMixin.__init__(
            self,
            http_client,
            crumb_issuer,
            base_url,
            stop_settle_delay=stop_settle_delay,
        )
        logger.debug(
            f"Initialized Jenkins client for {base_url} using {self.auth.scheme} authentication"
        )

    @classmethod
    def from_settings(cls, settings: "JenkinsSettings") -> "JenkinsClient":
        return cls(
            settings.base_url,
            username=settings.username,
            password=settings.password,
            api_token=settings.api_token,
            retry_config=RetryConfig(
                max_attempts=settings.retry.max_attempts,
                base_delay=settings.retry.backoff,
            ),
            timeout=settings.timeout,
            verify=get_ssl_context(settings.tls.skip_verify, settings.tls.ca_cert),
            crumb_strict=settings.crumb_strict,
            stop_settle_delay=settings.stop_settle_delay,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()
