from typing import Generator

import httpx
from loguru import logger


class JenkinsAuthentication(httpx.Auth):
    """
    Basic authentication for Jenkins.

    An API token takes precedence and is sent as the password of the configured user,
    otherwise the user/password pair is used. Without usable credentials the request is
    sent anonymously and Jenkins answers with 401/403.
    """

    def __init__(
        self,
        username: str | None = None,
        password: str | None = None,
        api_token: str | None = None,
    ):
        self.username = username
        self.password = password
        self.api_token = api_token
        self._basic_auth = self._resolve_basic_auth()

    def _resolve_basic_auth(self) -> httpx.BasicAuth | None:
        if self.api_token:
            return httpx.BasicAuth(self.username or "", self.api_token)
        if self.username and self.password:
            return httpx.BasicAuth(self.username, self.password)
        logger.warning("No Jenkins credentials configured, requests will be anonymous")
        return None

    @property
    def scheme(self) -> str:
        if self.api_token:
            return "token"
        if self._basic_auth is not None:
            return "password"
        return "anonymous"

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        if self._basic_auth is None:
            yield request
            return
        yield from self._basic_auth.auth_flow(request)
