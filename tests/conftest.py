import json
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from useradmin.notices import NoticeBoard
from useradmin.sessions import SessionStore
from useradmin.storage import LocalStorage


BASE_URL = "https://reqres.test"
DEMO_EMAIL = "eve.holt@reqres.in"
DEMO_PASSWORD = "pistol"
DEMO_TOKEN = "QpwL5tke4Pnpja7X4"

PAGES: Dict[int, List[Dict[str, object]]] = {
    1: [
        {"id": 1, "email": "george.bluth@reqres.in", "first_name": "George", "last_name": "Bluth",
         "avatar": "https://reqres.in/img/faces/1-image.jpg"},
        {"id": 2, "email": "janet.weaver@reqres.in", "first_name": "Janet", "last_name": "Weaver",
         "avatar": "https://reqres.in/img/faces/2-image.jpg"},
        {"id": 3, "email": "emma.wong@reqres.in", "first_name": "Emma", "last_name": "Wong",
         "avatar": "https://reqres.in/img/faces/3-image.jpg"},
    ],
    2: [
        {"id": 7, "email": "michael.lawson@reqres.in", "first_name": "Michael", "last_name": "Lawson",
         "avatar": "https://reqres.in/img/faces/7-image.jpg"},
        {"id": 8, "email": "lindsay.ferguson@reqres.in", "first_name": "Lindsay", "last_name": "Ferguson",
         "avatar": "https://reqres.in/img/faces/8-image.jpg"},
    ],
}


class RecordedRequest:
    def __init__(self, request: httpx.Request) -> None:
        self.method = request.method
        self.path = request.url.path
        self.params = dict(request.url.params)
        self.authorization = request.headers.get("Authorization")
        self.body = json.loads(request.content) if request.content else None


class FakeDirectory:
    """In-memory stand-in for the reqres.in user directory."""

    def __init__(self) -> None:
        self.requests: List[RecordedRequest] = []
        self.failures: Dict[Tuple[str, str], Union[int, Exception]] = {}

    def fail(self, method: str, path: str, outcome: Union[int, Exception]) -> None:
        self.failures[(method, path)] = outcome

    def calls(self, method: Optional[str] = None) -> List[RecordedRequest]:
        if method is None:
            return list(self.requests)
        return [item for item in self.requests if item.method == method]

    def handler(self, request: httpx.Request) -> httpx.Response:
        recorded = RecordedRequest(request)
        self.requests.append(recorded)

        failure = self.failures.get((recorded.method, recorded.path))
        if isinstance(failure, Exception):
            raise failure
        if isinstance(failure, int):
            return httpx.Response(failure, json={"error": f"forced {failure}"})

        if recorded.method == "POST" and recorded.path == "/api/login":
            body = recorded.body or {}
            if body.get("email") == DEMO_EMAIL and body.get("password"):
                return httpx.Response(200, json={"token": DEMO_TOKEN})
            return httpx.Response(400, json={"error": "user not found"})

        if recorded.method == "GET" and recorded.path == "/api/users":
            page = int(recorded.params.get("page", "1"))
            return httpx.Response(200, json={"page": page, "data": PAGES.get(page, [])})

        if recorded.path.startswith("/api/users/"):
            if recorded.method == "PUT":
                return httpx.Response(200, json={**(recorded.body or {}), "updatedAt": "2024-01-01T00:00:00Z"})
            if recorded.method == "DELETE":
                return httpx.Response(204)

        return httpx.Response(404, json={})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorage:
    return LocalStorage(tmp_path / "useradmin.sqlite3")


@pytest.fixture
def session(storage: LocalStorage) -> SessionStore:
    return SessionStore(storage, secret="tests-secret-key")


@pytest.fixture
def notices() -> NoticeBoard:
    return NoticeBoard()


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory()
