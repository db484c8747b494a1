from typing import AsyncGenerator

import pytest
import pytest_asyncio

from jenkins_mcp.clients.jenkins.client import JenkinsClient
from jenkins_mcp.helpers.retry import RetryConfig
from jenkins_mcp.tests.clients.jenkins.payloads import BASE_URL


@pytest.fixture
def retry_config() -> RetryConfig:
    return RetryConfig(max_attempts=0)


@pytest_asyncio.fixture
async def jenkins_client(
    retry_config: RetryConfig,
) -> AsyncGenerator[JenkinsClient, None]:
    client = JenkinsClient(
        BASE_URL,
        username="admin",
        api_token="11aabbccddeeff00112233445566778899",
        retry_config=retry_config,
        stop_settle_delay=0,
    )
    yield client
    await client.aclose()
