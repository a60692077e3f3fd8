"""The replace-and-publish pipeline.

One run walks the stages in :class:`Stage` order, stopping at the first
error. Nothing is retried and, unless ``cleanup_on_failure`` is set, nothing
is cleaned up: the workspace, local branch and commit stay for inspection.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from .client import GitLabClient
from .config import GitLabConfig, RunRequest
from .exceptions import ReplacerError
from .git import BasicAuth, CommitRecord, Repository
from .links import build_merge_request_link, open_in_browser
from .transform import TransformInvoker
from .workspace import prepare_workspace, remove_workspace

logger = logging.getLogger(__name__)

BRANCH_MARKER = "-dev-replacer-"
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


class Stage(enum.Enum):
    INIT = "init"
    WORKSPACE_READY = "workspace_ready"
    CLONED = "cloned"
    BRANCHED = "branched"
    TRANSFORMED = "transformed"
    COMMITTED = "committed"
    PUSHED = "pushed"
    RESOLVED = "resolved"
    LINKED = "linked"
    DONE = "done"
    FAILED = "failed"


def working_branch_name(origin_branch: str, revert: bool, now: datetime) -> str:
    """``<origin>-dev-replacer-<YYYYMMDDHHMMSS>``, prefixed ``revert-`` when reverting."""
    name = f"{origin_branch}{BRANCH_MARKER}{now.strftime(TIMESTAMP_FORMAT)}"
    return f"revert-{name}" if revert else name


def commit_message(tag: str, message: str, revert: bool) -> str:
    if revert:
        return f"chore(revert replace {tag}): {message}"
    return f"chore(replace {tag}): {message}"


@dataclass(frozen=True)
class PipelineResult:
    workspace: Path
    branch: str
    commit: str
    project_id: int
    link: str
    transform_output: str


CloneFn = Callable[[str, Path, str, BasicAuth], Awaitable[Repository]]


class Pipeline:
    """Runs one :class:`RunRequest` end to end.

    The collaborators are injectable so the sequencing can be exercised
    without git, a replacer binary or a GitLab server.
    """

    def __init__(
        self,
        request: RunRequest,
        *,
        clone: CloneFn | None = None,
        invoker: TransformInvoker | None = None,
        client_factory: Callable[[GitLabConfig], GitLabClient] = GitLabClient,
        opener: Callable[[str], bool] = open_in_browser,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.request = request
        self.stage = Stage.INIT
        self.failed_stage: Stage | None = None
        self.workspace: Path | None = None
        self.branch = ""
        self._clone = clone or Repository.clone
        self._invoker = invoker or TransformInvoker(
            timeout=request.transform_timeout,
            http_timeout=request.http_timeout,
            ssl_verify=request.ssl_verify,
        )
        self._client_factory = client_factory
        self._opener = opener
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @contextmanager
    def _step(self, target: Stage) -> Iterator[None]:
        """Advance to *target* when the body succeeds, or to FAILED when it raises."""
        try:
            yield
        except ReplacerError as e:
            self.failed_stage = target
            self.stage = Stage.FAILED
            logger.error(
                "Stage %s failed [repo=%s workspace=%s branch=%s]: %s",
                target.value,
                self.request.display_url,
                self.workspace or "-",
                self.branch or "-",
                e,
            )
            raise
        self.stage = target
        logger.debug("Reached stage %s", target.value)

    async def run(self) -> PipelineResult:
        try:
            return await self._run()
        except ReplacerError:
            if self.request.cleanup_on_failure and self.workspace is not None:
                remove_workspace(self.workspace)
            raise

    async def _run(self) -> PipelineResult:
        req = self.request
        with self._step(Stage.INIT):
            req.validate()
            gitlab_config = req.gitlab_config()
            gitlab_config.validate()

        auth = BasicAuth(req.username, req.password)
        self.branch = working_branch_name(req.branch, req.revert, self._clock())

        with self._step(Stage.WORKSPACE_READY):
            self.workspace = prepare_workspace(req.work_dir, req.repo_full_name)

        with self._step(Stage.CLONED):
            repo = await self._clone(req.repo_url, self.workspace, req.branch, auth)

        with self._step(Stage.BRANCHED):
            await repo.create_branch(self.branch)

        with self._step(Stage.TRANSFORMED):
            output = await self._invoker.invoke(
                self.workspace,
                req.tag,
                req.replacer_conf,
                req.replacer_conf_url,
                req.replacer_file,
                req.replacer_url,
                req.revert,
            )

        with self._step(Stage.COMMITTED):
            record = CommitRecord(
                message=commit_message(req.tag, req.commit_message, req.revert),
                author_email=req.username,
                when=self._clock(),
            )
            sha = await repo.commit_all(record)

        with self._step(Stage.PUSHED):
            await repo.push(auth)

        with self._step(Stage.RESOLVED):
            client = self._client_factory(gitlab_config)
            try:
                project_id = await client.resolve_project_id(
                    req.gitlab_group_id, req.repo_full_name, all_pages=req.all_pages
                )
            finally:
                await client.close()

        with self._step(Stage.LINKED):
            link = build_merge_request_link(
                req.scheme, req.host, req.repo_full_name, self.branch, req.branch, project_id
            )

        logger.info("remote repository url: %s", req.display_url)
        logger.info("local repository path: %s", self.workspace)
        logger.info("new branch: %s", self.branch)
        logger.info("current repository project id: %d", project_id)
        logger.info(
            "if the browser does not open automatically, visit this link "
            "to create the merge request:\n%s",
            link,
        )
        if req.open_browser:
            self._opener(link)

        self.stage = Stage.DONE
        return PipelineResult(
            workspace=self.workspace,
            branch=self.branch,
            commit=sha,
            project_id=project_id,
            link=link,
            transform_output=output,
        )
