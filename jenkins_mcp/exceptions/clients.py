from enum import StrEnum
from typing import Any

from jenkins_mcp.exceptions.base import BaseJenkinsMCPException


class ErrorCode(StrEnum):
    AUTH_FAILED = "AUTH_FAILED"
    NOT_FOUND = "NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    JENKINS_ERROR = "JENKINS_ERROR"
    PROTOCOL_AMBIGUITY = "PROTOCOL_AMBIGUITY"
    DECODE_ERROR = "DECODE_ERROR"
    CRUMB_ERROR = "CRUMB_ERROR"
    BUILD_STATE = "BUILD_STATE"
    PIPELINE_SCRIPT = "PIPELINE_SCRIPT"


class JenkinsClientError(BaseJenkinsMCPException):
    code: ErrorCode = ErrorCode.JENKINS_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.code}: {self.message} (details: {self.details})"
        return f"{self.code}: {self.message}"


class AuthenticationFailedError(JenkinsClientError):
    code = ErrorCode.AUTH_FAILED

    def __init__(self, message: str = "authentication failed") -> None:
        super().__init__(message)


class NotFoundError(JenkinsClientError):
    code = ErrorCode.NOT_FOUND

    def __init__(self, resource: str, key: Any) -> None:
        super().__init__(f"{resource} not found: {key}", {"resource": resource})
        self.resource = resource
        self.key = key


class InvalidInputError(JenkinsClientError):
    code = ErrorCode.INVALID_INPUT


class PermissionDeniedError(JenkinsClientError):
    code = ErrorCode.PERMISSION_DENIED

    def __init__(self, resource: str) -> None:
        super().__init__(f"permission denied: {resource}", {"resource": resource})
        self.resource = resource


class NetworkError(JenkinsClientError):
    code = ErrorCode.NETWORK_ERROR


class JenkinsTimeoutError(JenkinsClientError):
    code = ErrorCode.TIMEOUT

    def __init__(self, operation: str) -> None:
        super().__init__(f"operation timed out: {operation}")
        self.operation = operation


class UpstreamError(JenkinsClientError):
    code = ErrorCode.JENKINS_ERROR

    def __init__(
        self, status_code: int, body: str, retries_exhausted: bool = False
    ) -> None:
        details: dict[str, Any] = {"status_code": status_code, "body": body}
        if retries_exhausted:
            details["retries_exhausted"] = True
        super().__init__(f"unexpected status code {status_code}", details)
        self.status_code = status_code
        self.body = body
        self.retries_exhausted = retries_exhausted


class ConflictError(UpstreamError):
    pass


class ProtocolAmbiguityError(JenkinsClientError):
    code = ErrorCode.PROTOCOL_AMBIGUITY

    def __init__(self, message: str, hints: list[str]) -> None:
        super().__init__(message, {"hints": hints})
        self.hints = hints

    def __str__(self) -> str:
        causes = "\n".join(f" - {hint}" for hint in self.hints)
        return f"{self.code}: {self.message}. This usually happens when:\n{causes}"


class DecodeError(JenkinsClientError):
    code = ErrorCode.DECODE_ERROR


class CrumbError(JenkinsClientError):
    code = ErrorCode.CRUMB_ERROR


class BuildNotRunningError(InvalidInputError):
    def __init__(self, job_name: str, build_number: int, result: str | None) -> None:
        super().__init__(
            "build is not running",
            {"job": job_name, "build": build_number, "result": result},
        )


class BuildStateError(JenkinsClientError):
    code = ErrorCode.BUILD_STATE


class BuildStillRunningError(BuildStateError):
    def __init__(self, job_name: str, build_number: int) -> None:
        super().__init__(
            "build is still running after stop request",
            {"job": job_name, "build": build_number},
        )


class UnexpectedBuildStateError(BuildStateError):
    def __init__(self, job_name: str, build_number: int, result: str | None) -> None:
        super().__init__(
            f"build status is {result}, expected ABORTED",
            {"job": job_name, "build": build_number, "result": result},
        )
        self.result = result


class PipelineScriptError(JenkinsClientError):
    code = ErrorCode.PIPELINE_SCRIPT


class EmptyPipelineScriptError(PipelineScriptError):
    pass


class ScmPipelineScriptError(PipelineScriptError):
    pass


class NotAPipelineJobError(PipelineScriptError):
    pass
