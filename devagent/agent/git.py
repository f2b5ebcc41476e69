"""Source-control operations on the agent's project checkout.

Drives the ``git`` CLI through asyncio subprocesses.  The project lives at
``{projects_dir}/{project.name}``.
"""

from __future__ import annotations

import asyncio
import base64
import os
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx
from anyio import to_thread
from loguru import logger

if TYPE_CHECKING:
    from devagent.agent.models import GitUserData, Project
    from devagent.agent.settings import AgentSettings

CLONE_USERNAME = "devagent"
"""Basic-auth username sent alongside a provider token; hosts only check the token."""


class GitCommandError(RuntimeError):
    """A git invocation exited with a non-zero status."""

    def __init__(self, command: list[str], returncode: int, stderr: str) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or "no output"
        super().__init__(f"git {_subcommand(command)} failed with exit code {returncode}: {detail}")


def credential_args(url: str, auth_token: str | None) -> list[str]:
    """Global ``-c`` options sending ``auth_token`` as basic auth to ``url``'s origin.

    The header is scoped to the repository's scheme, host and port and is
    passed on the command line only, so it never lands in ``.git/config``.
    Other URL schemes (ssh, scp-like) get no options.
    """
    if not auth_token or not url.startswith(("http://", "https://")):
        return []
    parsed = httpx.URL(url)
    origin = f"{parsed.scheme}://{parsed.netloc.decode('ascii').rsplit('@', 1)[-1]}/"
    credentials = base64.b64encode(f"{CLONE_USERNAME}:{auth_token}".encode()).decode("ascii")
    return ["-c", f"http.{origin}.extraHeader=Authorization: Basic {credentials}"]


def secret_forms(secret: str) -> list[str]:
    """Spellings of ``secret`` that may show up in git output or arguments."""
    forms = {
        secret,
        quote(secret, safe=""),
        base64.b64encode(f"{CLONE_USERNAME}:{secret}".encode()).decode("ascii"),
    }
    return sorted(forms, key=len, reverse=True)


def redact(text: str, secrets: list[str]) -> str:
    for secret in secrets:
        text = text.replace(secret, "***")
    return text


class GitService:
    """Git operations for a single project checkout."""

    def __init__(
        self,
        projects_dir: str | Path,
        *,
        git_config_path: str | Path = "~/.gitconfig",
        credential_helper: str | None = None,
        git_binary: str = "git",
    ) -> None:
        self.projects_dir = Path(projects_dir)
        self.git_config_path = Path(git_config_path).expanduser()
        self.credential_helper = credential_helper
        self.git_binary = git_binary

    @classmethod
    def from_settings(cls, settings: AgentSettings) -> GitService:
        return cls(
            settings.projects_dir,
            git_config_path=settings.git_config_path,
            credential_helper=settings.git_credential_helper,
        )

    def project_path(self, project: Project) -> Path:
        return self.projects_dir / project.name

    # -- Operations ------------------------------------------------------------

    async def repository_exists(self, project: Project) -> bool:
        """Whether the project directory already holds a git repository."""
        git_dir = self.project_path(project) / ".git"
        return await to_thread.run_sync(_path_exists, git_dir)

    async def clone_repository(self, project: Project, auth_token: str | None = None) -> None:
        """Clone the project's repository into its project path.

        The token is only sent for this invocation; ``origin`` keeps the
        plain repository URL.
        """
        url = project.repository.url
        if not url:
            msg = f"project '{project.name}' has no repository url"
            raise ValueError(msg)

        target = self.project_path(project)
        await to_thread.run_sync(lambda: target.parent.mkdir(parents=True, exist_ok=True))

        args = [*credential_args(url, auth_token), "clone", "--progress"]
        if project.repository.branch:
            args += ["--branch", project.repository.branch]
        args += [url, str(target)]

        logger.debug("Running git clone {} -> {}", url, target)
        await self._run(args, secrets=secret_forms(auth_token) if auth_token else None)

    async def set_git_config(self, user_data: GitUserData | None) -> None:
        """Write the user identity and credential helper into the git config file."""
        entries: list[tuple[str, str]] = []
        if self.credential_helper:
            entries.append(("credential.helper", self.credential_helper))
        if user_data is not None:
            if user_data.name:
                entries.append(("user.name", user_data.name))
            if user_data.email:
                entries.append(("user.email", user_data.email))

        if not entries:
            logger.debug("No git config entries to write")
            return

        await to_thread.run_sync(lambda: self.git_config_path.parent.mkdir(parents=True, exist_ok=True))
        for key, value in entries:
            await self._run(["config", "--file", str(self.git_config_path), key, value])

    # -- Internals -------------------------------------------------------------

    async def _run(self, args: list[str], *, secrets: list[str] | None = None) -> str:
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        proc = await asyncio.create_subprocess_exec(
            self.git_binary,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
        stdout, stderr = await proc.communicate()
        err_text = stderr.decode(errors="replace")
        if secrets:
            err_text = redact(err_text, secrets)

        if proc.returncode != 0:
            command = [redact(a, secrets) for a in args] if secrets else args
            raise GitCommandError(command, proc.returncode or 1, err_text)
        for line in err_text.splitlines():
            if line.strip():
                logger.debug("git: {}", line.strip())
        return stdout.decode(errors="replace")


def _path_exists(path: Path) -> bool:
    return path.exists()


def _subcommand(command: list[str]) -> str:
    """First non-option argument, skipping ``-C <dir>`` and ``-c <key=value>``."""
    skip = False
    for arg in command:
        if skip:
            skip = False
        elif arg in ("-C", "-c"):
            skip = True
        elif not arg.startswith("-"):
            return arg
    return ""
