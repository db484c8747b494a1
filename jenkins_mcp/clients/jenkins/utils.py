import asyncio
import functools
from typing import Any, Awaitable, Callable, TypeVar
from urllib.parse import quote

import httpx
from loguru import logger

from jenkins_mcp.exceptions.clients import (
    AuthenticationFailedError,
    ConflictError,
    InvalidInputError,
    JenkinsClientError,
    JenkinsTimeoutError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    UpstreamError,
)
from jenkins_mcp.helpers.retry import RetryExhaustedError

T = TypeVar("T")


def job_path(job_name: str) -> str:
    """
    Translate a (possibly folder nested) job name into its Jenkins URL path.

    `folder/sub/job` -> `/job/folder/job/sub/job/job`
    """
    validate_job_name(job_name)
    segments = [segment for segment in job_name.strip("/").split("/") if segment]
    return "".join(f"/job/{quote(segment, safe='')}" for segment in segments)


def validate_job_name(job_name: str) -> None:
    if not job_name or not job_name.strip("/ "):
        raise InvalidInputError("job name cannot be empty")


def validate_build_number(build_number: int) -> None:
    if build_number <= 0:
        raise InvalidInputError(
            "build number must be positive", {"build_number": build_number}
        )


def validate_queue_id(queue_id: int) -> None:
    if queue_id <= 0:
        raise InvalidInputError("queue id must be positive", {"queue_id": queue_id})


def handle_jenkins_status_code(
    response: httpx.Response,
    resource: str,
    key: Any,
    accept_redirects: bool = False,
    should_log: bool = True,
) -> None:
    if response.is_success or (accept_redirects and response.is_redirect):
        return

    if should_log:
        logger.error(
            f"Request {response.request.method} {response.request.url} failed with status code:"
            f" {response.status_code}, Error: {response.text}"
        )

    match response.status_code:
        case 401:
            raise AuthenticationFailedError()
        case 403:
            raise PermissionDeniedError(resource)
        case 404:
            raise NotFoundError(resource, key)
        case 409:
            raise ConflictError(response.status_code, response.text)
        case _:
            raise UpstreamError(response.status_code, response.text)


def map_transport_error(error: httpx.HTTPError, operation: str) -> JenkinsClientError:
    if isinstance(error, RetryExhaustedError):
        if error.last_response is not None:
            return UpstreamError(
                error.last_response.status_code,
                error.last_response.text,
                retries_exhausted=True,
            )
        return NetworkError(
            f"request failed after {error.attempts} attempts: {error.__cause__ or error}",
            {"operation": operation, "attempts": error.attempts},
        )
    if isinstance(error, httpx.TimeoutException):
        return JenkinsTimeoutError(operation)
    return NetworkError(f"request failed: {error}", {"operation": operation})


def bounded(
    operation: str,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Give a client operation an optional keyword-only `timeout` (seconds) bounding the
    whole operation, sub-requests and sleeps included.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, timeout: float | None = None, **kwargs: Any) -> T:
            if timeout is None:
                return await func(*args, **kwargs)
            if timeout <= 0:
                raise InvalidInputError("timeout must be positive", {"timeout": timeout})
            try:
                async with asyncio.timeout(timeout):
                    return await func(*args, **kwargs)
            except TimeoutError as e:
                logger.warning(f"Jenkins operation {operation} timed out after {timeout}s")
                raise JenkinsTimeoutError(operation) from e

        return wrapper

    return decorator
