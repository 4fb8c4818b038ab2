from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, List

import pytest
import requests

from clustersnap.common.http_client import ClusterHTTPClient
from clustersnap.snapshot.operations import SnapshotOperations

FIXTURES = Path(__file__).parent / "fixtures"
ADDRESS = "http://es.test:9200"

Handler = Callable[[str, str, bytes | None], requests.Response]


def make_response(status: int = 200, body: Any = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.reason = {200: "OK", 404: "Not Found", 500: "Internal Server Error"}.get(status, "")
    if body is None:
        content = b"{}"
    elif isinstance(body, (bytes, str)):
        content = body.encode("utf-8") if isinstance(body, str) else body
    else:
        content = json.dumps(body).encode("utf-8")
    response._content = content
    response.encoding = "utf-8"
    return response


class DummySession:
    """Stands in for requests.Session and records every request it receives."""

    def __init__(self, handler: Handler | None = None) -> None:
        self.handler = handler or (lambda method, path, body: make_response())
        self.calls: List[tuple[str, str, bytes | None]] = []
        self.timeouts: List[float | None] = []
        self.closed = False

    def request(self, method: str, url: str, data: bytes | None = None, **kwargs: Any) -> requests.Response:
        assert url.startswith(ADDRESS + "/"), url
        path = url[len(ADDRESS) :]
        self.calls.append((method, path, data))
        self.timeouts.append(kwargs.get("timeout"))
        return self.handler(method, path, data)

    def close(self) -> None:
        self.closed = True

    def methods(self, method: str) -> List[str]:
        return [path for called, path, _ in self.calls if called == method]


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


@pytest.fixture()
def listing_body() -> str:
    return load_fixture("list_snapshots_response.json")


@pytest.fixture()
def session() -> DummySession:
    return DummySession()


@pytest.fixture()
def ops(session: DummySession) -> SnapshotOperations:
    client = ClusterHTTPClient(ADDRESS, session=session)  # type: ignore[arg-type]
    return SnapshotOperations(client, clock=lambda: 1414576801.7)
