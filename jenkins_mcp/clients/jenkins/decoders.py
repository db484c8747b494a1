"""
Decoders turning the raw Jenkins JSON (as returned by the `tree` projected endpoints)
into the flat records of `jenkins_mcp.clients.jenkins.types`.

Every decoder is a pure function over the response bytes. Absent or `null` collections
become empty containers and structurally malformed payloads raise `DecodeError`.
"""
import json
import re
from typing import Any, Iterable, TypeVar

from pydantic import BaseModel, ValidationError

from jenkins_mcp.clients.jenkins.types import (
    Artifact,
    Build,
    Crumb,
    Job,
    JobDetails,
    JobParameter,
    Node,
    QueueItem,
    ServerHealth,
    View,
    ViewDetails,
)
from jenkins_mcp.exceptions.clients import DecodeError

ModelT = TypeVar("ModelT", bound=BaseModel)

QUEUE_LOCATION_PATTERN = re.compile(r"/queue/item/(\d+)")
QUEUE_BODY_PATTERN = re.compile(r"/queue/item/(\d+)/")


def _load_json(content: bytes | str) -> dict[str, Any]:
    try:
        payload = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"failed to parse response: {e}") from e
    if not isinstance(payload, dict):
        raise DecodeError(
            f"unexpected response shape: expected an object, got {type(payload).__name__}"
        )
    return payload


def _compact(raw: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in raw.items() if value is not None}


def _validate(model: type[ModelT], raw: Any) -> ModelT:
    if not isinstance(raw, dict):
        raise DecodeError(
            f"unexpected {model.__name__} shape: expected an object, got {type(raw).__name__}"
        )
    try:
        return model.model_validate(_compact(raw))
    except ValidationError as e:
        raise DecodeError(
            f"failed to decode {model.__name__}", {"errors": e.errors(include_url=False)}
        ) from e


def _collection(payload: dict[str, Any], key: str) -> list[Any]:
    items = payload.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise DecodeError(f"unexpected shape for '{key}': expected a list")
    return items


def _validate_all(model: type[ModelT], items: Iterable[Any]) -> list[ModelT]:
    return [_validate(model, item) for item in items]


def decode_jobs(content: bytes | str) -> list[Job]:
    return _validate_all(Job, _collection(_load_json(content), "jobs"))


def _parameter_definitions(properties: list[Any]) -> list[JobParameter]:
    parameters = []
    for job_property in properties:
        if not isinstance(job_property, dict):
            continue
        for definition in job_property.get("parameterDefinitions") or []:
            if not isinstance(definition, dict):
                raise DecodeError("unexpected parameter definition shape")
            default = definition.get("defaultParameterValue") or {}
            parameters.append(
                _validate(
                    JobParameter,
                    {
                        "name": definition.get("name"),
                        "type": definition.get("type"),
                        "defaultValue": (
                            default.get("value") if isinstance(default, dict) else None
                        ),
                        "description": definition.get("description"),
                    },
                )
            )
    return parameters


def decode_job_details(content: bytes | str) -> JobDetails:
    payload = _load_json(content)
    # Parameters arrive nested under the generic property list
    parameters = _parameter_definitions(_collection(payload, "property"))
    raw = {key: value for key, value in payload.items() if key != "property"}
    raw["parameters"] = parameters
    return _validate(JobDetails, raw)


def _executor_label(executor: Any) -> str | None:
    if isinstance(executor, dict):
        number = executor.get("number")
        return str(number) if number is not None else None
    if executor is None or executor == "":
        return None
    return str(executor)


def build_from_raw(raw: Any) -> Build:
    if not isinstance(raw, dict):
        raise DecodeError("unexpected build shape: expected an object")
    normalized = dict(raw)
    normalized["executor"] = _executor_label(raw.get("executor"))
    if normalized.get("building"):
        # Jenkins may already report a result while the build is finishing
        normalized["result"] = None
    return _validate(Build, normalized)


def decode_build(content: bytes | str) -> Build:
    return build_from_raw(_load_json(content))


def decode_latest_build(content: bytes | str) -> Build | None:
    """Decode the `lastBuild` of a job projection, None when the job never ran."""
    last_build = _load_json(content).get("lastBuild")
    if last_build is None:
        return None
    return build_from_raw(last_build)


def decode_artifacts(content: bytes | str) -> list[Artifact]:
    return _validate_all(Artifact, _collection(_load_json(content), "artifacts"))


def parse_queue_params(params: str | None) -> dict[str, str]:
    """
    Parse the queue `params` field, a newline separated list of KEY=value pairs
    (Jenkins prefixes it with a newline).
    """
    if not params:
        return {}
    parameters = {}
    for line in params.splitlines():
        key, separator, value = line.partition("=")
        if not separator or not key.strip():
            continue
        parameters[key.strip()] = value
    return parameters


def queue_item_from_raw(raw: Any) -> QueueItem:
    if not isinstance(raw, dict):
        raise DecodeError("unexpected queue item shape: expected an object")
    task = raw.get("task") or {}
    if not isinstance(task, dict):
        raise DecodeError("unexpected queue item task shape")
    params = raw.get("params")
    return _validate(
        QueueItem,
        {
            "id": raw.get("id"),
            "jobName": task.get("name"),
            "why": raw.get("why"),
            "blocked": raw.get("blocked"),
            "buildable": raw.get("buildable"),
            "stuck": raw.get("stuck"),
            "inQueueSince": raw.get("inQueueSince"),
            "parameters": parse_queue_params(params if isinstance(params, str) else None),
        },
    )


def decode_queue(content: bytes | str) -> list[QueueItem]:
    return [queue_item_from_raw(item) for item in _collection(_load_json(content), "items")]


def decode_queue_item(content: bytes | str) -> QueueItem:
    return queue_item_from_raw(_load_json(content))


def decode_views(content: bytes | str) -> list[View]:
    return _validate_all(View, _collection(_load_json(content), "views"))


def decode_view_details(content: bytes | str) -> ViewDetails:
    payload = _load_json(content)
    raw = dict(payload)
    raw["jobs"] = _validate_all(Job, _collection(payload, "jobs"))
    return _validate(ViewDetails, raw)


def decode_nodes(content: bytes | str) -> list[Node]:
    return _validate_all(Node, _collection(_load_json(content), "computer"))


def decode_server_health(content: bytes | str, version: str | None) -> ServerHealth:
    payload = _load_json(content)
    mode = payload.get("mode")
    return ServerHealth(
        status=True,
        version=version,
        mode=mode if isinstance(mode, str) else None,
        quieting_down=bool(payload.get("quietingDown")),
    )


def decode_crumb(content: bytes | str) -> Crumb:
    return _validate(Crumb, _load_json(content))


def extract_queue_id(location: str | None, body: bytes | str = b"") -> int | None:
    """
    Correlate a trigger response with its queue item.

    The `Location` header is authoritative, the body is scanned for a queue item path
    when the header was dropped, and a `_links.self.href` JSON field is the last resort.
    """
    if location and (match := QUEUE_LOCATION_PATTERN.search(location)):
        return int(match.group(1))

    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    if not text:
        return None
    if match := QUEUE_BODY_PATTERN.search(text):
        return int(match.group(1))

    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    links = payload.get("_links")
    href = (
        links.get("self", {}).get("href")
        if isinstance(links, dict) and isinstance(links.get("self"), dict)
        else None
    )
    if isinstance(href, str) and (match := QUEUE_LOCATION_PATTERN.search(href)):
        return int(match.group(1))
    return None
