"""Shared fixtures: a fake Proxmox server behind httpx.MockTransport."""

import json
from collections.abc import Callable

import httpx
import pytest

from proxmoxve import ProxmoxClient

LOGIN_PATH = "/api2/json/access/ticket"

LOGIN_OK = {
    "data": {
        "ticket": "T1",
        "CSRFPreventionToken": "C1",
        "username": "u@pam",
    },
}


def _copy(response: httpx.Response) -> httpx.Response:
    # Canned responses are answered more than once; hand out fresh objects.
    return httpx.Response(
        response.status_code,
        headers=response.headers,
        content=response.content,
    )


class FakeProxmox:
    """Records every request and answers login and resource calls.

    Login responses are taken in order from ``login_responses`` (the last
    one is repeated). Resource responses come from ``routes`` keyed by
    ``(method, path)`` and default to an empty ``data`` payload.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.login_responses: list[httpx.Response] = [
            httpx.Response(200, json=LOGIN_OK),
        ]
        self.routes: dict[tuple[str, str], httpx.Response] = {}
        self._logins = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == LOGIN_PATH:
            index = min(self._logins, len(self.login_responses) - 1)
            self._logins += 1
            return _copy(self.login_responses[index])
        key = (request.method, request.url.path)
        return _copy(self.routes.get(key, httpx.Response(200, json={"data": None})))

    @property
    def login_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == LOGIN_PATH]

    @property
    def resource_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path != LOGIN_PATH]

    def http_client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


def form_body(request: httpx.Request) -> dict[str, str]:
    """Decode a form-encoded request body."""
    return dict(httpx.QueryParams(request.content.decode()))


def json_body(request: httpx.Request) -> dict:
    """Decode a JSON request body."""
    return json.loads(request.content)


@pytest.fixture
def credentials() -> dict[str, str]:
    """Valid credentials for the fake server."""
    return {
        "hostname": "pve.example.com",
        "username": "root",
        "password": "secret",
    }


@pytest.fixture
def server() -> FakeProxmox:
    """Fake Proxmox server accepting every login."""
    return FakeProxmox()


@pytest.fixture
def make_client(
    server: FakeProxmox,
    credentials: dict[str, str],
) -> Callable[..., ProxmoxClient]:
    """Factory building clients wired to the fake server."""

    def _make(**kwargs) -> ProxmoxClient:
        kwargs.setdefault("credentials", credentials)
        return ProxmoxClient(http_client=server.http_client(), **kwargs)

    return _make
