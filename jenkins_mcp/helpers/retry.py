import asyncio
import random
from typing import Any, Iterable, Optional

import httpx


class RetryConfig:
    """Configuration class for the retry behavior of the Jenkins transport."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        jitter_ratio: float = 0.0,
        retryable_methods: Optional[Iterable[str]] = None,
    ):
        """
        Initialize retry configuration.

        Args:
            max_attempts: Maximum number of retry attempts after the first request
            base_delay: Base delay in seconds for exponential backoff
            jitter_ratio: Jitter ratio for backoff (0-0.5), 0 disables jitter
            retryable_methods: HTTP methods that can be retried (defaults to GET only)
        """
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.jitter_ratio = jitter_ratio

        # Mutations are never replayed unless explicitly configured
        self.retryable_methods = (
            frozenset(retryable_methods) if retryable_methods else frozenset(["GET"])
        )

        if max_attempts < 0:
            raise ValueError(
                f"Max attempts should be non-negative, actual {max_attempts}"
            )
        if base_delay < 0:
            raise ValueError(f"Base delay should be non-negative, actual {base_delay}")
        if jitter_ratio < 0 or jitter_ratio > 0.5:
            raise ValueError(
                f"Jitter ratio should be between 0 and 0.5, actual {jitter_ratio}"
            )


class RetryExhaustedError(httpx.TransportError):
    """
    Raised once a retryable request failed on every attempt.

    `last_response` holds the final 5xx response (body already read) when the
    last attempt got an answer from the server, and is None when it failed at
    the transport level, in which case the transport error is the __cause__.
    """

    def __init__(
        self,
        message: str,
        *,
        request: httpx.Request,
        attempts: int,
        last_response: httpx.Response | None = None,
    ) -> None:
        super().__init__(message, request=request)
        self.attempts = attempts
        self.last_response = last_response


# Adapted from https://github.com/encode/httpx/issues/108#issuecomment-1434439481
class RetryTransport(httpx.AsyncBaseTransport):
    """
    A custom HTTP transport that retries idempotent requests using an exponential backoff
    strategy on transport failures and on server errors (5xx).

    Args:
        wrapped_transport (httpx.AsyncBaseTransport): The underlying HTTP transport
            to wrap and use for making requests.
        max_attempts (int, optional): The maximum number of times to retry a request after
            the first attempt. Defaults to 3.
        base_delay (float, optional): The delay before the first retry, doubled for every
            following retry. Defaults to 1 second.
        jitter_ratio (float, optional): The amount of jitter to add to the backoff time.
            The value should be between 0 and 0.5. Defaults to 0 (no jitter).
        retryable_methods (Iterable[str], optional): The HTTP methods that can be retried.
            Defaults to ["GET"].
        retry_config (RetryConfig, optional): Configuration for retry behavior. Takes
            precedence over the individual arguments.
        logger (Any, optional): The logger to use for logging retries.
    """

    def __init__(
        self,
        wrapped_transport: httpx.AsyncBaseTransport,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        jitter_ratio: float = 0.0,
        retryable_methods: Iterable[str] | None = None,
        retry_config: Optional[RetryConfig] = None,
        logger: Any | None = None,
    ) -> None:
        self._wrapped_transport = wrapped_transport

        if retry_config is not None:
            self._retry_config = retry_config
        else:
            self._retry_config = RetryConfig(
                max_attempts=max_attempts,
                base_delay=base_delay,
                jitter_ratio=jitter_ratio,
                retryable_methods=retryable_methods,
            )

        self._logger = logger

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Sends an HTTP request, possibly with retries.

        Args:
            request: The request to perform.

        Returns:
            The response.

        """
        if not self._is_retryable_method(request):
            try:
                return await self._wrapped_transport.handle_async_request(request)
            except Exception as e:
                if self._logger is not None:
                    self._logger.error(
                        f"Request {request.method} {request.url} failed: {repr(e)}"
                    )
                raise e

        return await self._retry_operation_async(request)

    async def aclose(self) -> None:
        """
        Closes the underlying HTTP transport, terminating all outstanding connections and rejecting any further
        requests.
        """
        await self._wrapped_transport.aclose()

    def _is_retryable_method(self, request: httpx.Request) -> bool:
        return request.method in self._retry_config.retryable_methods

    def _should_retry(self, response: httpx.Response) -> bool:
        return response.status_code >= 500

    def _calculate_sleep(self, attempts_made: int) -> float:
        backoff = self._retry_config.base_delay * (2 ** (attempts_made - 1))
        if not self._retry_config.jitter_ratio:
            return backoff
        jitter = (backoff * self._retry_config.jitter_ratio) * random.choice([1, -1])
        return backoff + jitter

    def _log_before_retry(
        self,
        request: httpx.Request,
        sleep_time: float,
        response: httpx.Response | None,
        error: Exception | None,
    ) -> None:
        if self._logger and response:
            self._logger.warning(
                f"Request {request.method} {request.url} failed with status code:"
                f" {response.status_code}, retrying in {sleep_time} seconds."
            )
        elif self._logger and error:
            self._logger.warning(
                f"Request {request.method} {request.url} failed with exception:"
                f" {type(error).__name__} - {str(error) or 'No error message'}, retrying in {sleep_time} seconds."
            )

    def _log_exhausted(
        self,
        request: httpx.Request,
        attempts: int,
        response: httpx.Response | None,
        error: Exception | None,
    ) -> None:
        if not self._logger:
            return
        if response is not None:
            reason = f"status code {response.status_code}"
        else:
            reason = f"{type(error).__name__} - {str(error) or 'No error message'}"
        self._logger.error(
            f"Request {request.method} {request.url} failed after {attempts} attempts: {reason}"
        )

    async def _retry_operation_async(self, request: httpx.Request) -> httpx.Response:
        remaining_attempts = self._retry_config.max_attempts
        attempts_made = 0
        response: httpx.Response | None = None
        error: httpx.TransportError | None = None
        while True:
            if attempts_made > 0:
                sleep_time = self._calculate_sleep(attempts_made)
                self._log_before_retry(request, sleep_time, response, error)
                await asyncio.sleep(sleep_time)

            error = None
            response = None
            try:
                response = await self._wrapped_transport.handle_async_request(request)
                response.request = request
                if not self._should_retry(response):
                    return response
                if remaining_attempts < 1:
                    await response.aread()
                    await response.aclose()
                    break
                await response.aclose()
            except httpx.TransportError as e:
                error = e
                if remaining_attempts < 1:
                    break
            attempts_made += 1
            remaining_attempts -= 1

        total_attempts = attempts_made + 1
        self._log_exhausted(request, total_attempts, response, error)
        raise RetryExhaustedError(
            f"max retries exceeded for {request.method} {request.url}",
            request=request,
            attempts=total_attempts,
            last_response=response,
        ) from error
