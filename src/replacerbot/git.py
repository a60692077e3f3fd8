"""Git repository operations over HTTP(S) with basic authentication.

The pipeline uses these in a fixed order within one run::

    repo = await Repository.clone(url, workspace, "main", auth)
    await repo.create_branch("main-dev-replacer-20240101120000")
    sha = await repo.commit_all(record)
    await repo.push(auth)

Every failure raises the matching :class:`~replacerbot.exceptions.GitError`
subclass. Nothing is rolled back: a failed push leaves the local commit.
"""

from __future__ import annotations

import base64
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from .config import redact_url
from .exceptions import CheckoutError, CloneError, CommitError, GitError, PushError
from .process import ProcessResult
from .process import run as run_process

logger = logging.getLogger(__name__)

AUTHOR_NAME = "replacerbot"

__all__ = ["AUTHOR_NAME", "BasicAuth", "CommitRecord", "Repository"]


@dataclass(frozen=True, slots=True)
class BasicAuth:
    """HTTP basic credentials for clone and push."""

    username: str
    password: str = field(repr=False)

    def header(self) -> str:
        token = base64.b64encode(f"{self.username}:{self.password}".encode()).decode("ascii")
        return f"Authorization: Basic {token}"


@dataclass(frozen=True, slots=True)
class CommitRecord:
    """Author, message and timestamp of the transformation commit.

    Attributes:
        message: Full commit message.
        author_email: Author and committer email (the run's username).
        author_name: Author and committer name.
        when: Commit timestamp.
    """

    message: str
    author_email: str
    author_name: str = AUTHOR_NAME
    when: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Repository:
    """A local clone driven through the ``git`` executable.

    Attributes:
        path: Path to the working tree root.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    async def clone(
        cls, url: str, target_dir: Path, branch: str, auth: BasicAuth | None = None
    ) -> Repository:
        """Shallow, single-branch clone of *branch* into *target_dir*.

        Raises:
            CloneError: network or authentication failure, or unknown branch.
        """
        args = ["clone", "--depth", "1", "--single-branch", "--branch", branch]
        args += [url, str(target_dir)]
        result = await _git(args, cwd=target_dir.parent, auth=auth)
        if not result.ok:
            raise CloneError("clone", result.returncode, result.output)
        logger.info("Cloned %s (%s) into %s", redact_url(url), branch, target_dir)
        return cls(target_dir)

    async def current_branch(self) -> str:
        result = await self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        if not result.ok:
            raise GitError("rev-parse", result.returncode, result.output)
        return result.output.strip()

    async def create_branch(self, name: str) -> None:
        """Create *name* from the current checkout and switch to it.

        Raises:
            CheckoutError: the branch already exists or checkout is blocked.
        """
        result = await self._run(["checkout", "-b", name])
        if not result.ok:
            raise CheckoutError("checkout", result.returncode, result.output)
        logger.info("Switched to new branch %s", name)

    async def commit_all(self, record: CommitRecord) -> str:
        """Stage every change in the working tree and commit it.

        Returns:
            The full hash of the new commit.

        Raises:
            CommitError: git failed, or there was nothing to commit.
        """
        result = await self._run(["add", "--all"])
        if not result.ok:
            raise CommitError("add", result.returncode, result.output)

        # exits 1 when the index differs from HEAD
        result = await self._run(["diff", "--cached", "--quiet"])
        if result.returncode == 0:
            raise CommitError("commit", 1, "nothing to commit, working tree clean")
        if result.returncode != 1:
            raise CommitError("diff", result.returncode, result.output)

        # git's internal "<unix-timestamp> <offset>" date format
        date = f"{int(record.when.timestamp())} {record.when.strftime('%z') or '+0000'}"
        env = {
            "GIT_AUTHOR_NAME": record.author_name,
            "GIT_AUTHOR_EMAIL": record.author_email,
            "GIT_AUTHOR_DATE": date,
            "GIT_COMMITTER_NAME": record.author_name,
            "GIT_COMMITTER_EMAIL": record.author_email,
            "GIT_COMMITTER_DATE": date,
        }
        result = await self._run(
            ["commit", "--no-verify", "--no-gpg-sign", "-m", record.message], env=env
        )
        if not result.ok:
            raise CommitError("commit", result.returncode, result.output)

        result = await self._run(["rev-parse", "HEAD"])
        if not result.ok:
            raise CommitError("rev-parse", result.returncode, result.output)
        sha = result.output.strip()
        logger.info("Committed %s", sha)
        return sha

    async def push(self, auth: BasicAuth | None = None) -> None:
        """Push the current branch, and only it, to ``origin``.

        Raises:
            PushError: authentication, network failure, or remote rejection.
        """
        try:
            branch = await self.current_branch()
        except GitError as e:
            raise PushError("push", e.returncode, e.output) from e
        result = await self._run(["push", "--set-upstream", "origin", branch], auth=auth)
        if not result.ok:
            raise PushError("push", result.returncode, result.output)
        logger.info("Pushed %s to origin", branch)

    async def _run(
        self,
        args: list[str],
        *,
        auth: BasicAuth | None = None,
        env: dict[str, str] | None = None,
    ) -> ProcessResult:
        return await _git(["-C", str(self.path), *args], cwd=self.path, auth=auth, env=env)


async def _git(
    args: list[str],
    *,
    cwd: Path,
    auth: BasicAuth | None = None,
    env: dict[str, str] | None = None,
) -> ProcessResult:
    """Run git non-interactively.

    Credentials reach git as an environment-supplied ``http.extraHeader``, so they
    never appear in the process arguments or in the clone's ``.git/config``.
    """
    logger.debug("git %s", " ".join(redact_url(a) for a in args))
    full_env = {**os.environ, "GIT_TERMINAL_PROMPT": "0", **(env or {})}
    if auth is not None and (auth.username or auth.password):
        full_env.update(
            {
                "GIT_CONFIG_COUNT": "1",
                "GIT_CONFIG_KEY_0": "http.extraHeader",
                "GIT_CONFIG_VALUE_0": auth.header(),
            }
        )
    return await run_process(["git", *args], cwd=cwd, env=full_env)
