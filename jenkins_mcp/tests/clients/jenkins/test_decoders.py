import json

import pytest

from jenkins_mcp.clients.jenkins.decoders import (
    decode_artifacts,
    decode_build,
    decode_crumb,
    decode_job_details,
    decode_jobs,
    decode_latest_build,
    decode_nodes,
    decode_queue,
    decode_queue_item,
    decode_view_details,
    decode_views,
    extract_queue_id,
    parse_queue_params,
)
from jenkins_mcp.clients.jenkins.types import BuildResult
from jenkins_mcp.exceptions.clients import DecodeError
from jenkins_mcp.tests.clients.jenkins.payloads import (
    build_payload,
    job_details_payload,
)


@pytest.mark.parametrize("content", [b'{"jobs": null}', b'{"jobs": []}', b"{}"])
def test_decode_jobs_empty(content: bytes) -> None:
    assert decode_jobs(content) == []


def test_decode_jobs() -> None:
    content = json.dumps(
        {
            "jobs": [
                {
                    "_class": "hudson.model.FreeStyleProject",
                    "name": "app",
                    "url": "http://jenkins/job/app/",
                    "description": None,
                    "buildable": True,
                    "inQueue": True,
                    "color": "blue_anime",
                },
                {"_class": "com.cloudbees.hudson.plugins.folder.Folder", "name": "team"},
            ]
        }
    )

    jobs = decode_jobs(content)

    assert [job.name for job in jobs] == ["app", "team"]
    assert jobs[0].in_queue is True
    assert jobs[0].description == ""
    assert jobs[1].buildable is False
    assert jobs[1].color == ""


@pytest.mark.parametrize(
    "content", [b"not json", b"[]", b'{"jobs": "nope"}', b'{"jobs": [{"url": "x"}]}']
)
def test_decode_jobs_malformed(content: bytes) -> None:
    with pytest.raises(DecodeError):
        decode_jobs(content)


def test_decode_job_details_flattens_parameters() -> None:
    content = json.dumps(
        job_details_payload(
            parameters=[
                {
                    "name": "BRANCH",
                    "type": "StringParameterDefinition",
                    "defaultParameterValue": {"value": "main"},
                    "description": "branch to build",
                },
                {
                    "name": "DRY_RUN",
                    "type": "BooleanParameterDefinition",
                    "defaultParameterValue": {"value": False},
                    "description": None,
                },
                {
                    "name": "TOKEN",
                    "type": "PasswordParameterDefinition",
                    "defaultParameterValue": None,
                },
            ]
        )
    )

    job = decode_job_details(content)

    assert [parameter.name for parameter in job.parameters] == [
        "BRANCH",
        "DRY_RUN",
        "TOKEN",
    ]
    assert job.parameters[0].default_value == "main"
    assert job.parameters[1].default_value is False
    assert job.parameters[1].description == ""
    assert job.parameters[2].default_value is None
    assert job.is_parameterized
    assert job.last_build is not None and job.last_build.number == 7
    assert job.last_failed_build is None


def test_decode_job_details_without_parameters() -> None:
    job = decode_job_details(json.dumps(job_details_payload()))

    assert job.parameters == []
    assert not job.is_parameterized


def test_decode_build() -> None:
    build = decode_build(json.dumps(build_payload(result="FAILURE")))

    assert build.number == 42
    assert build.result == BuildResult.FAILURE
    assert build.building is False
    assert build.executor is None
    assert build.estimated_duration == 15000


def test_decode_build_running_has_no_result() -> None:
    build = decode_build(json.dumps(build_payload(building=True, result="SUCCESS")))

    assert build.building is True
    assert build.result is None
    assert build.executor == "1"


def test_decode_build_rejects_non_positive_number() -> None:
    with pytest.raises(DecodeError):
        decode_build(json.dumps(build_payload(number=0)))


def test_build_round_trip_preserves_state() -> None:
    build = decode_build(json.dumps(build_payload(result="UNSTABLE")))

    decoded = decode_build(build.model_dump_json(by_alias=True))

    assert decoded.number == build.number
    assert decoded.result == build.result
    assert decoded.building == build.building
    assert decoded.timestamp == build.timestamp


def test_decode_latest_build() -> None:
    assert decode_latest_build(b'{"lastBuild": null}') is None
    build = decode_latest_build(json.dumps({"lastBuild": build_payload(number=3)}))
    assert build is not None and build.number == 3


def test_decode_artifacts() -> None:
    artifacts = decode_artifacts(
        json.dumps(
            {
                "artifacts": [
                    {
                        "fileName": "app.jar",
                        "relativePath": "target/app.jar",
                        "size": 1024,
                    }
                ]
            }
        )
    )

    assert artifacts[0].relative_path == "target/app.jar"
    assert artifacts[0].size == 1024
    assert decode_artifacts(b'{"artifacts": []}') == []


def test_decode_queue_flattens_task_and_params() -> None:
    content = json.dumps(
        {
            "items": [
                {
                    "id": 12,
                    "task": {"name": "app"},
                    "why": "Waiting for next available executor",
                    "blocked": False,
                    "buildable": True,
                    "stuck": False,
                    "inQueueSince": 1700000000000,
                    "params": "\nBRANCH=main\nVERSION=1.2=beta",
                }
            ]
        }
    )

    [item] = decode_queue(content)

    assert item.id == 12
    assert item.job_name == "app"
    assert item.buildable is True
    assert item.parameters == {"BRANCH": "main", "VERSION": "1.2=beta"}


def test_decode_queue_empty() -> None:
    assert decode_queue(b'{"items": []}') == []
    assert decode_queue(b'{"items": null}') == []


def test_decode_queue_item_without_task() -> None:
    item = decode_queue_item(b'{"id": 5, "why": null}')

    assert item.id == 5
    assert item.job_name == ""
    assert item.why == ""
    assert item.parameters == {}


@pytest.mark.parametrize(
    "params, expected",
    [
        (None, {}),
        ("", {}),
        ("\nA=1\nB=", {"A": "1", "B": ""}),
        ("A=1\ngarbage\n=orphan", {"A": "1"}),
    ],
)
def test_parse_queue_params(params: str | None, expected: dict[str, str]) -> None:
    assert parse_queue_params(params) == expected


def test_decode_views_and_details() -> None:
    views = decode_views(b'{"views": [{"name": "all", "url": "http://jenkins/"}]}')
    details = decode_view_details(
        json.dumps(
            {
                "name": "backend",
                "url": "http://jenkins/view/backend/",
                "description": None,
                "jobs": [{"name": "app"}],
            }
        )
    )

    assert views[0].name == "all"
    assert details.description == ""
    assert [job.name for job in details.jobs] == ["app"]


def test_decode_nodes() -> None:
    nodes = decode_nodes(
        json.dumps(
            {
                "computer": [
                    {
                        "displayName": "built-in",
                        "offline": False,
                        "temporarilyOffline": False,
                        "numExecutors": 2,
                    }
                ]
            }
        )
    )

    assert nodes[0].display_name == "built-in"
    assert nodes[0].num_executors == 2
    assert decode_nodes(b"{}") == []


def test_decode_crumb() -> None:
    crumb = decode_crumb(b'{"crumb": "abc", "crumbRequestField": "Jenkins-Crumb"}')

    assert crumb.header == {"Jenkins-Crumb": "abc"}


class TestExtractQueueId:
    def test_from_location_header(self) -> None:
        assert extract_queue_id("http://jenkins/queue/item/123/", b"") == 123

    def test_location_without_trailing_slash(self) -> None:
        assert extract_queue_id("http://jenkins/queue/item/7", b"") == 7

    def test_from_body(self) -> None:
        body = b"<html><a href='/queue/item/42/'>queued</a></html>"
        assert extract_queue_id(None, body) == 42

    def test_from_links(self) -> None:
        body = json.dumps({"_links": {"self": {"href": "/queue/item/9"}}})
        assert extract_queue_id(None, body) == 9

    def test_location_wins_over_body(self) -> None:
        assert extract_queue_id("/queue/item/1/", b"/queue/item/2/") == 1

    @pytest.mark.parametrize(
        "location, body", [(None, b""), ("http://jenkins/login", b"<html/>"), (None, b"[]")]
    )
    def test_nothing_found(self, location: str | None, body: bytes) -> None:
        assert extract_queue_id(location, body) is None
