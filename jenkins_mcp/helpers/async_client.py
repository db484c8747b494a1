from typing import Any, Type

import httpx
from loguru import logger

from jenkins_mcp.helpers.retry import RetryTransport, RetryConfig

JENKINS_HTTP_MAX_CONNECTIONS_LIMIT = 100
JENKINS_HTTP_MAX_KEEP_ALIVE_CONNECTIONS = 10
JENKINS_HTTP_KEEP_ALIVE_EXPIRY = 90.0

JENKINS_HTTPX_LIMITS = httpx.Limits(
    max_connections=JENKINS_HTTP_MAX_CONNECTIONS_LIMIT,
    max_keepalive_connections=JENKINS_HTTP_MAX_KEEP_ALIVE_CONNECTIONS,
    keepalive_expiry=JENKINS_HTTP_KEEP_ALIVE_EXPIRY,
)


class JenkinsAsyncClient(httpx.AsyncClient):
    """
    This class is a wrapper around httpx.AsyncClient that uses a custom transport class.
    This is done to allow passing our custom transport class to the AsyncClient constructor while still allowing
    all the default AsyncClient behavior that is changed when passing a custom transport instance.
    """

    def __init__(
        self,
        transport_class: Type[RetryTransport] = RetryTransport,
        transport_kwargs: dict[str, Any] | None = None,
        retry_config: RetryConfig | None = None,
        **kwargs: Any,
    ):
        self._transport_kwargs = transport_kwargs
        self._transport_class = transport_class
        self._retry_config = retry_config
        kwargs.setdefault("limits", JENKINS_HTTPX_LIMITS)
        super().__init__(**kwargs)

    def _init_transport(  # type: ignore[override]
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        **kwargs: Any,
    ) -> httpx.AsyncBaseTransport:
        if transport is not None:
            return super()._init_transport(transport=transport, **kwargs)

        return self._transport_class(
            wrapped_transport=httpx.AsyncHTTPTransport(**kwargs),
            retry_config=self._retry_config,
            logger=logger,
            **(self._transport_kwargs or {}),
        )

    def _init_proxy_transport(  # type: ignore[override]
        self, proxy: httpx.Proxy, **kwargs: Any
    ) -> httpx.AsyncBaseTransport:
        return self._transport_class(
            wrapped_transport=httpx.AsyncHTTPTransport(proxy=proxy, **kwargs),
            retry_config=self._retry_config,
            logger=logger,
            **(self._transport_kwargs or {}),
        )
