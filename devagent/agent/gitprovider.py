"""Match a repository URL to one of the configured git providers.

Provider hosts come from the provider's ``base_api_url`` when it is set
(self-hosted instances), otherwise from the well-known host of its id.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

import httpx

from devagent.agent.models import GitProvider

WELL_KNOWN_HOSTS: dict[str, str] = {
    "github": "github.com",
    "gitlab": "gitlab.com",
    "bitbucket": "bitbucket.org",
    "codeberg": "codeberg.org",
    "azure-devops": "dev.azure.com",
    "aws-codecommit": "amazonaws.com",
}

SUBDOMAIN_PROVIDERS: frozenset[str] = frozenset({"azure-devops", "aws-codecommit"})
"""Provider ids whose repositories live on subdomains of the well-known host
(``{org}.dev.azure.com``, ``git-codecommit.{region}.amazonaws.com``).
Every other provider matches its host exactly."""

# user@host:path (scp-like syntax used by ssh remotes)
_SCP_LIKE = re.compile(r"^(?:[^@/]+@)?(?P<host>[^:/]+):(?!//)")


def _normalize(host: str) -> str:
    host = host.lower().rstrip(".")
    return host.removeprefix("www.")


def get_host(url: str) -> str | None:
    """Return the normalized host of a repository or API URL, or ``None``."""
    url = url.strip()
    if not url:
        return None

    if "://" not in url:
        match = _SCP_LIKE.match(url)
        if match:
            return _normalize(match.group("host"))
        url = f"https://{url}"

    try:
        host = httpx.URL(url).host
    except (httpx.InvalidURL, ValueError):
        return None
    return _normalize(host) if host else None


def provider_host(provider: GitProvider) -> str | None:
    """Host served by ``provider``, or ``None`` if it cannot be determined."""
    if provider.base_api_url:
        # api.github.com serves github.com; ghe.corp/api/v3 serves ghe.corp
        host = get_host(provider.base_api_url)
        return host.removeprefix("api.") if host else None
    return WELL_KNOWN_HOSTS.get(provider.id)


def _host_matches(repo_host: str, provider: GitProvider, candidate: str) -> bool:
    if repo_host == candidate:
        return True
    return (
        provider.id in SUBDOMAIN_PROVIDERS
        and not provider.base_api_url
        and repo_host.endswith(f".{candidate}")
    )


def get_git_provider_from_host(url: str, providers: Iterable[GitProvider]) -> GitProvider | None:
    """Return the first provider whose host matches ``url``'s host.

    Never raises: an unparsable URL or an empty provider list yields ``None``.
    """
    repo_host = get_host(url)
    if repo_host is None:
        return None

    for provider in providers:
        host = provider_host(provider)
        if host and _host_matches(repo_host, provider, host):
            return provider
    return None
