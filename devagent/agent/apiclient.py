"""Async HTTP client for the control-plane API.

Only the three endpoints the agent needs at startup are exposed:

- ``GET /workspace/{workspace_id}``    -> ``Workspace``
- ``GET /server/config``               -> ``ServerConfig``
- ``GET /gitprovider/{id}/user``       -> ``GitUserData``

Every failure (transport error, non-2xx status, undecodable body) surfaces
as ``ServerApiError``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from devagent.agent.models import GitUserData, ServerConfig, Workspace

if TYPE_CHECKING:
    from types import TracebackType

    from devagent.agent.settings import AgentSettings

ModelT = TypeVar("ModelT", bound=BaseModel)


class ServerApiError(LookupError):
    """A control-plane call failed or returned an error response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        if status_code is not None:
            message = f"{message} (status {status_code})"
        super().__init__(message)


def _error_message(response: httpx.Response) -> str:
    """Extract the server's error message from a failed response.

    The server replies with ``{"error": "..."}`` on failure; fall back to the
    HTTP reason phrase when the body is anything else.
    """
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
        return body["error"]
    return response.reason_phrase or "request failed"


def _segment(value: str) -> str:
    """Quote an id as a single path segment (``/``, ``?`` and ``#`` included)."""
    return quote(value, safe="")


class ServerApiClient:
    """Control-plane client backed by ``httpx.AsyncClient``.

    Use as an async context manager, or call ``aclose()`` when done.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: AgentSettings) -> ServerApiClient:
        api_key = settings.server_api_key.get_secret_value() if settings.server_api_key else None
        return cls(settings.server_url, api_key=api_key, timeout=settings.request_timeout)

    # -- Endpoints -------------------------------------------------------------

    async def get_workspace(self, workspace_id: str) -> Workspace:
        return await self._get(f"/workspace/{_segment(workspace_id)}", Workspace)

    async def get_config(self) -> ServerConfig:
        return await self._get("/server/config", ServerConfig)

    async def get_git_user_data(self, git_provider_id: str) -> GitUserData:
        return await self._get(f"/gitprovider/{_segment(git_provider_id)}/user", GitUserData)

    # -- Internals -------------------------------------------------------------

    async def _get(self, path: str, model: type[ModelT]) -> ModelT:
        try:
            response = await self._client.get(path)
        except httpx.HTTPError as exc:
            msg = f"GET {path} failed: {exc}"
            raise ServerApiError(msg) from exc

        if response.is_error:
            raise ServerApiError(_error_message(response), status_code=response.status_code)

        try:
            data: Any = response.json()
            return model.model_validate(data)
        except (ValueError, ValidationError) as exc:
            msg = f"GET {path} returned an invalid {model.__name__}: {exc}"
            raise ServerApiError(msg, status_code=response.status_code) from exc

    # -- Lifecycle -------------------------------------------------------------

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ServerApiClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
