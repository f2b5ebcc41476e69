"""Git provider models served by the control plane."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class GitProvider(BaseModel):
    """A configured source-control host, optionally carrying an auth token."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    username: str | None = None
    token: str | None = Field(default=None, repr=False)
    base_api_url: str | None = None


class GitUserData(BaseModel):
    """Identity (name / email) of the user on a git provider."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str | None = None
    username: str | None = None
    name: str | None = None
    email: str | None = None


class ServerConfig(BaseModel):
    """Subset of the control-plane server configuration used by the agent."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    git_providers: list[GitProvider] = Field(default_factory=list)
    api_port: int | None = None
    server_download_url: str | None = None
