"""Shared fixtures: an in-memory build API and a scripted prompter."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
import pytest

from impcli.api.client import ImpClient
from impcli.models.config import ClientSettings
from impcli.storage.config_store import ConfigStore
from impcli.workflow.prompts import Prompter

VALID_KEY = "good-key"


def _error(status: int, code: str, message: str) -> httpx.Response:
    return httpx.Response(
        status,
        json={"success": False, "error": {"code": code, "message_short": message}},
    )


@dataclass
class FakeImpServer:
    """Minimal stand-in for the build API, served through httpx.MockTransport.

    Attributes:
        models: model id -> name.
        devices: list of {"id", "model_id"} dicts.
        revisions: model id -> list of {"version", "device_code", "agent_code"}.
        failing: (method, path) pairs answered with HTTP 500.
        leaky_device_filter: Ignore model_id when listing devices.
    """

    valid_key: str = VALID_KEY
    models: dict[str, str] = field(default_factory=dict)
    devices: list[dict[str, Any]] = field(default_factory=list)
    revisions: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    failing: set[tuple[str, str]] = field(default_factory=set)
    leaky_device_filter: bool = False
    requests: list[httpx.Request] = field(default_factory=list)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/v4")
        method = request.method

        expected = "Basic " + base64.b64encode(f"{self.valid_key}:".encode()).decode()
        if request.headers.get("Authorization") != expected:
            return _error(401, "InvalidCredentials", "Invalid Api-Key")
        if (method, path) in self.failing:
            return _error(500, "InternalError", "Something went wrong")

        parts = [p for p in path.split("/") if p]
        params = request.url.params

        if parts == ["devices"] and method == "GET":
            found = self.devices
            if "device_id" in params:
                found = [d for d in found if d["id"] == params["device_id"]]
            if "model_id" in params and not self.leaky_device_filter:
                found = [d for d in found if d["model_id"] == params["model_id"]]
            return httpx.Response(200, json={"success": True, "devices": found})

        if parts == ["models"] and method == "GET":
            wanted = params.get("name", "").lower()
            found = [
                {"id": mid, "name": name}
                for mid, name in self.models.items()
                if wanted in name.lower()
            ]
            return httpx.Response(200, json={"success": True, "models": found})

        if parts == ["models"] and method == "POST":
            name = json.loads(request.content)["name"]
            model_id = f"m-{len(self.models) + 1}"
            self.models[model_id] = name
            return httpx.Response(200, json={"success": True, "model": {"id": model_id, "name": name}})

        if len(parts) >= 2 and parts[0] == "models":
            model_id = parts[1]
            if model_id not in self.models:
                return _error(404, "ModelNotFound", f"Model '{model_id}' not found")
            if len(parts) == 2:
                return httpx.Response(
                    200,
                    json={"success": True, "model": {"id": model_id, "name": self.models[model_id]}},
                )
            revisions = self.revisions.get(model_id, [])
            if len(parts) == 3 and parts[2] == "revisions":
                summaries = [{"version": r["version"]} for r in revisions]
                return httpx.Response(200, json={"success": True, "revisions": summaries})
            if len(parts) == 4 and parts[2] == "revisions":
                for r in revisions:
                    if str(r["version"]) == parts[3]:
                        return httpx.Response(200, json={"success": True, "revision": r})
                return _error(404, "RevisionNotFound", "Revision not found")

        return _error(404, "NotFound", f"No route for {method} {path}")

    def requests_to(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path.removeprefix("/v4") == path
        ]

    def client(self, api_key: str) -> ImpClient:
        return ImpClient(
            api_key,
            ClientSettings(max_retries=0),
            transport=httpx.MockTransport(self.handle),
        )


class ScriptedPrompter(Prompter):
    """Prompter answering from a fixed list and recording every label.

    Raises EOFError once the answers run out, which stops a workflow
    that keeps re-prompting.
    """

    def __init__(self, answers: list[str]) -> None:
        self.answers = list(answers)
        self.asked: list[str] = []

    def ask(self, label: str, default: str | None = None) -> str:
        self.asked.append(label)
        if not self.answers:
            raise EOFError(f"No scripted answer for '{label}'")
        answer = self.answers.pop(0)
        if not answer and default is not None:
            return default
        return answer


@pytest.fixture
def server() -> FakeImpServer:
    return FakeImpServer()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "project"
    directory.mkdir()
    return directory


@pytest.fixture
def global_path(tmp_path: Path) -> Path:
    return tmp_path / "home" / ".impconfig"


@pytest.fixture
def store(project_dir: Path, global_path: Path) -> ConfigStore:
    return ConfigStore(project_dir, global_path=global_path)
