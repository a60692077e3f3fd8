"""Replace content on a fresh branch, push it and open a GitLab merge request link."""

import asyncio
import logging
import sys
from collections.abc import Callable

import click
from dotenv import load_dotenv

from .config import RunRequest
from .exceptions import ReplacerError
from .pipeline import Pipeline
from .transform import TransformInvoker


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _replacer_options(func: Callable) -> Callable:
    """Options shared by both commands for locating and configuring the replacer."""
    options = [
        click.option("--tag", envvar="REPLACER_TAG", default="", help="Tag name"),
        click.option(
            "--replacer-file", envvar="REPLACER_FILE", default="", help="Local replacer path"
        ),
        click.option(
            "--replacer-url", envvar="REPLACER_URL", default="", help="Remote replacer URL"
        ),
        click.option(
            "--replacer-conf", envvar="REPLACER_CONF", default="", help="Local replacer config"
        ),
        click.option(
            "--replacer-conf-url",
            envvar="REPLACER_CONF_URL",
            default="",
            help="Remote replacer config URL",
        ),
        click.option("--revert", is_flag=True, help="Revert the replace operations"),
        click.option("-v", "--verbose", is_flag=True, help="Enable debug logging"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.command()
@click.option("--repo-url", envvar="REPLACER_REPO_URL", required=True, help="Git repository URL")
@click.option("--username", envvar="REPLACER_USERNAME", required=True, help="GitLab username")
@click.option("--password", envvar="REPLACER_PASSWORD", required=True, help="GitLab password")
@click.option("--branch", envvar="REPLACER_BRANCH", required=True, help="Origin branch name")
@click.option(
    "--work-dir", envvar="REPLACER_WORK_DIR", default="./repo", help="Workspace directory"
)
@click.option(
    "--commit-message", envvar="REPLACER_COMMIT_MESSAGE", default="", help="Commit message"
)
@click.option(
    "--gitlab-group-id",
    envvar="GITLAB_GROUP_ID",
    type=int,
    default=0,
    help="GitLab group id, see /api/v4/groups",
)
@click.option(
    "--gitlab-token",
    envvar="GITLAB_TOKEN",
    default="",
    help="GitLab personal access token, see /profile/personal_access_tokens",
)
@click.option(
    "--transform-timeout",
    envvar="REPLACER_TRANSFORM_TIMEOUT",
    type=float,
    default=None,
    help="Kill the replacer after this many seconds (default: wait forever)",
)
@click.option(
    "--cleanup-on-failure",
    is_flag=True,
    envvar="REPLACER_CLEANUP_ON_FAILURE",
    help="Delete the workspace when the run fails",
)
@click.option(
    "--all-pages",
    is_flag=True,
    envvar="GITLAB_ALL_PAGES",
    help="Search every page of the group's projects",
)
@click.option("--no-browser", is_flag=True, help="Do not open the merge request link")
@click.option("--no-ssl-verify", is_flag=True, help="Skip TLS verification for HTTP calls")
@click.option("--timeout", envvar="GITLAB_TIMEOUT", type=int, default=30, help="HTTP timeout")
@_replacer_options
def run_command(
    repo_url: str,
    username: str,
    password: str,
    branch: str,
    work_dir: str,
    commit_message: str,
    gitlab_group_id: int,
    gitlab_token: str,
    transform_timeout: float | None,
    cleanup_on_failure: bool,
    all_pages: bool,
    no_browser: bool,
    no_ssl_verify: bool,
    timeout: int,
    tag: str,
    replacer_file: str,
    replacer_url: str,
    replacer_conf: str,
    replacer_conf_url: str,
    revert: bool,
    verbose: bool,
) -> None:
    """Clone, replace, commit, push and open a merge request link."""
    _setup_logging(verbose)
    request = RunRequest(
        repo_url=repo_url,
        username=username,
        password=password,
        branch=branch,
        tag=tag,
        work_dir=work_dir,
        commit_message=commit_message,
        replacer_file=replacer_file,
        replacer_url=replacer_url,
        replacer_conf=replacer_conf,
        replacer_conf_url=replacer_conf_url,
        gitlab_group_id=gitlab_group_id,
        gitlab_token=gitlab_token,
        revert=revert,
        transform_timeout=transform_timeout,
        cleanup_on_failure=cleanup_on_failure,
        all_pages=all_pages,
        open_browser=not no_browser,
        http_timeout=timeout,
        ssl_verify=not no_ssl_verify,
    )
    try:
        asyncio.run(Pipeline(request).run())
    except ReplacerError:
        # the failing stage has already logged the error
        sys.exit(1)


@click.command()
@click.option("--root", envvar="REPLACER_ROOT", default="./", help="Root workspace")
@click.option(
    "--timeout",
    envvar="REPLACER_TRANSFORM_TIMEOUT",
    type=float,
    default=None,
    help="Kill the replacer after this many seconds",
)
@_replacer_options
def starter_command(
    root: str,
    timeout: float | None,
    tag: str,
    replacer_file: str,
    replacer_url: str,
    replacer_conf: str,
    replacer_conf_url: str,
    revert: bool,
    verbose: bool,
) -> None:
    """Run only the replacer against an existing directory."""
    _setup_logging(verbose)
    invoker = TransformInvoker(timeout=timeout)
    try:
        asyncio.run(
            invoker.invoke(
                root, tag, replacer_conf, replacer_conf_url, replacer_file, replacer_url, revert
            )
        )
    except ReplacerError:
        # the failing stage has already logged the error
        sys.exit(1)


def main() -> None:
    """Console entry point for `replacerbot`; reads a .env file first."""
    load_dotenv()
    run_command()


def starter() -> None:
    """Console entry point for `replacer-starter`."""
    load_dotenv()
    starter_command()


if __name__ == "__main__":
    main()
