from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class JenkinsModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class BuildResult(StrEnum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    UNSTABLE = "UNSTABLE"
    ABORTED = "ABORTED"
    NOT_BUILT = "NOT_BUILT"


class Job(JenkinsModel):
    name: str
    url: str = ""
    description: str = ""
    buildable: bool = False
    in_queue: bool = False
    color: str = ""


class BuildReference(JenkinsModel):
    number: int
    url: str = ""


class JobParameter(JenkinsModel):
    name: str
    type: str = ""
    default_value: Any = None
    description: str = ""


class JobDetails(Job):
    last_build: BuildReference | None = None
    last_successful_build: BuildReference | None = None
    last_failed_build: BuildReference | None = None
    parameters: list[JobParameter] = Field(default_factory=list)
    disabled: bool = False

    @property
    def is_parameterized(self) -> bool:
        return len(self.parameters) > 0


class Build(JenkinsModel):
    number: int = Field(gt=0)
    url: str = ""
    result: BuildResult | None = None
    building: bool = False
    duration: int = 0
    timestamp: int = 0
    executor: str | None = None
    estimated_duration: int = 0


class QueueItem(JenkinsModel):
    id: int
    job_name: str = ""
    why: str = ""
    blocked: bool = False
    buildable: bool = False
    stuck: bool = False
    in_queue_since: int = 0
    parameters: dict[str, str] = Field(default_factory=dict)


class Artifact(JenkinsModel):
    file_name: str
    relative_path: str
    size: int = 0


class RunningBuild(JenkinsModel):
    job_name: str
    build_number: int
    url: str = ""
    timestamp: int = 0
    estimated_duration: int = 0
    executor: str | None = None


class View(JenkinsModel):
    name: str
    url: str = ""
    description: str = ""


class ViewDetails(View):
    jobs: list[Job] = Field(default_factory=list)


class Node(JenkinsModel):
    display_name: str
    offline: bool = False
    temporarily_offline: bool = False
    num_executors: int = 0


class ServerHealth(JenkinsModel):
    status: bool
    version: str | None = None
    mode: str | None = None
    quieting_down: bool = False


class Crumb(JenkinsModel):
    crumb: str
    crumb_request_field: str

    @property
    def header(self) -> dict[str, str]:
        return {self.crumb_request_field: self.crumb}
