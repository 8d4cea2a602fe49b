"""Pytest configuration - loads .env for integration tests and fakes the Rundeck server."""

import io
import json
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
from dotenv import load_dotenv

from rundeck_cli.sdk import RundeckClient

# Load .env from project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

BASE_URL = "http://rundeck.test"
TOKEN = "test-token"


@dataclass
class FakeResponse:
    """Stands in for the object urllib.request.urlopen returns."""

    status: int
    body: bytes

    def read(self) -> bytes:
        return self.body

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc: object) -> bool:
        return False


@dataclass
class FakeServer:
    """Routes (method, path) to canned responses and records every request."""

    routes: dict[tuple[str, str], tuple[int, bytes]] = field(default_factory=dict)
    requests: list[urllib.request.Request] = field(default_factory=list)

    def route(self, method: str, path: str, body: Any, status: int = 200) -> None:
        if isinstance(body, str):
            raw = body.encode("utf-8")
        elif isinstance(body, bytes):
            raw = body
        else:
            raw = json.dumps(body).encode("utf-8")
        self.routes[(method, path)] = (status, raw)

    def urlopen(self, req: urllib.request.Request, timeout: float | None = None) -> FakeResponse:
        self.requests.append(req)
        # http://rundeck.test/api/27/user/info -> user/info
        path = req.full_url.split("/api/", 1)[1].split("/", 1)[1]
        status, body = self.routes.get((req.get_method(), path), (404, b'{"error": true, "message": "not found"}'))
        if status >= 400:
            raise urllib.error.HTTPError(req.full_url, status, "error", {}, io.BytesIO(body))  # type: ignore[arg-type]
        return FakeResponse(status, body)

    def paths(self) -> list[tuple[str, str]]:
        return [(r.get_method(), r.full_url.split("/api/", 1)[1].split("/", 1)[1]) for r in self.requests]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep a developer's .env from leaking into unit tests."""
    for name in ("RUNDECK_URL", "RUNDECK_TOKEN", "RUNDECK_API_VERSION", "RUNDECK_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def server(monkeypatch) -> FakeServer:
    fake = FakeServer()
    monkeypatch.setattr(urllib.request, "urlopen", fake.urlopen)
    return fake


@pytest.fixture
def make_client(server):
    def _make(api_version: int = 27) -> RundeckClient:
        return RundeckClient(token=TOKEN, base_url=BASE_URL, api_version=api_version)

    return _make
