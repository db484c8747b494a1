from typing import Any

import httpx

BASE_URL = "http://jenkins.example.com"
CRUMB_URL = f"{BASE_URL}/crumbIssuer/api/json"


def api_url(path: str, tree: str | None = None, **params: Any) -> httpx.URL:
    if tree is not None:
        params["tree"] = tree
    return httpx.URL(f"{BASE_URL}{path}", params=params or None)


def build_payload(
    number: int = 42,
    building: bool = False,
    result: str | None = "SUCCESS",
    **overrides: Any,
) -> dict[str, Any]:
    payload = {
        "_class": "hudson.model.FreeStyleBuild",
        "number": number,
        "url": f"{BASE_URL}/job/app/{number}/",
        "result": result,
        "building": building,
        "duration": 0 if building else 12000,
        "timestamp": 1700000000000,
        "executor": {"number": 1} if building else None,
        "estimatedDuration": 15000,
    }
    payload.update(overrides)
    return payload


def job_details_payload(
    name: str = "app", parameters: list[dict[str, Any]] | None = None
) -> dict[str, Any]:
    properties: list[dict[str, Any]] = [{}]
    if parameters is not None:
        properties.append(
            {
                "_class": "hudson.model.ParametersDefinitionProperty",
                "parameterDefinitions": parameters,
            }
        )
    return {
        "_class": "hudson.model.FreeStyleProject",
        "name": name,
        "url": f"{BASE_URL}/job/{name}/",
        "description": None,
        "buildable": True,
        "inQueue": False,
        "color": "blue",
        "disabled": False,
        "lastBuild": {"number": 7, "url": f"{BASE_URL}/job/{name}/7/"},
        "lastSuccessfulBuild": {"number": 7, "url": f"{BASE_URL}/job/{name}/7/"},
        "lastFailedBuild": None,
        "property": properties,
    }
