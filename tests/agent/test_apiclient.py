"""Unit tests for the control-plane client using ``httpx.MockTransport``."""

from __future__ import annotations

import httpx
import pytest

from devagent.agent.apiclient import ServerApiClient, ServerApiError
from devagent.agent.settings import AgentSettings

WORKSPACE_JSON = {
    "id": "ws1",
    "name": "my-workspace",
    "target": "local",
    "projects": [
        {
            "name": "app",
            "workspaceId": "ws1",
            "repository": {
                "url": "https://github.com/org/app.git",
                "name": "app",
                "owner": "org",
                "branch": "main",
                "sha": "abc123",
                "source": "github.com",
            },
        },
        {"name": "docs", "repository": {}},
    ],
}

CONFIG_JSON = {
    "apiPort": 3986,
    "providersDir": "/providers",
    "gitProviders": [
        {"id": "github", "username": "jane", "token": "ghp_x"},
        {"id": "gitlab-self-managed", "username": "jane", "token": "glpat", "baseApiUrl": "https://gl.corp/api/v4"},
    ],
}


def _client(handler, **kwargs) -> ServerApiClient:
    return ServerApiClient("http://server.test", transport=httpx.MockTransport(handler), **kwargs)


async def test_get_workspace() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=WORKSPACE_JSON)

    async with _client(handler, api_key="secret") as client:
        workspace = await client.get_workspace("ws1")

    assert seen[0].url.path == "/workspace/ws1"
    assert seen[0].headers["Authorization"] == "Bearer secret"
    assert workspace.id == "ws1"
    assert [p.name for p in workspace.projects] == ["app", "docs"]
    app = workspace.projects[0]
    assert app.workspace_id == "ws1"
    assert app.repository.url == "https://github.com/org/app.git"
    assert app.repository.branch == "main"
    assert workspace.projects[1].repository.url is None


async def test_no_auth_header_without_key() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=CONFIG_JSON)

    async with _client(handler) as client:
        await client.get_config()

    assert "Authorization" not in seen[0].headers


async def test_get_config() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/server/config"
        return httpx.Response(200, json=CONFIG_JSON)

    async with _client(handler) as client:
        config = await client.get_config()

    assert config.api_port == 3986
    assert [p.id for p in config.git_providers] == ["github", "gitlab-self-managed"]
    assert config.git_providers[0].token == "ghp_x"
    assert config.git_providers[1].base_api_url == "https://gl.corp/api/v4"


async def test_get_git_user_data() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/gitprovider/github/user"
        return httpx.Response(200, json={"id": "42", "username": "jane", "name": "Jane", "email": "j@x.io"})

    async with _client(handler) as client:
        user = await client.get_git_user_data("github")

    assert user.name == "Jane"
    assert user.email == "j@x.io"


@pytest.mark.parametrize(
    ("call", "expected"),
    [
        ("workspace", b"/workspace/a%2Fb%3Fc%23d"),
        ("user", b"/gitprovider/a%2Fb%3Fc%23d/user"),
    ],
)
async def test_ids_are_quoted_as_one_path_segment(call: str, expected: bytes) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "x"})

    async with _client(handler) as client:
        if call == "workspace":
            await client.get_workspace("a/b?c#d")
        else:
            await client.get_git_user_data("a/b?c#d")

    assert seen[0].url.raw_path == expected
    assert seen[0].url.query == b""


async def test_error_response_uses_server_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "workspace not found"})

    async with _client(handler) as client:
        with pytest.raises(ServerApiError) as exc_info:
            await client.get_workspace("missing")

    assert exc_info.value.status_code == 404
    assert "workspace not found" in str(exc_info.value)


async def test_error_response_without_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>bad gateway</html>")

    async with _client(handler) as client:
        with pytest.raises(ServerApiError) as exc_info:
            await client.get_config()

    assert exc_info.value.status_code == 502
    assert "Bad Gateway" in str(exc_info.value)


async def test_transport_error_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(ServerApiError, match="connection refused") as exc_info:
            await client.get_workspace("ws1")

    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value, LookupError)


async def test_invalid_body_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"projects": []})

    async with _client(handler) as client:
        with pytest.raises(ServerApiError, match="invalid Workspace"):
            await client.get_workspace("ws1")


async def test_non_json_body_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not json")

    async with _client(handler) as client:
        with pytest.raises(ServerApiError):
            await client.get_config()


def test_from_settings() -> None:
    settings = AgentSettings(server_url="http://cp.test:3986", server_api_key="k", request_timeout=5)
    client = ServerApiClient.from_settings(settings)

    assert client._client.base_url.host == "cp.test"
    assert client._client.base_url.port == 3986
    assert client._client.headers["Authorization"] == "Bearer k"
    assert client._client.timeout.read == 5
