"""Run configuration for replacerbot."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse, urlunparse

from .exceptions import ConfigError


def redact_url(url: str) -> str:
    """Strip ``user:password@`` from *url*."""
    parsed = urlparse(url)
    if "@" not in parsed.netloc:
        return url
    return urlunparse(parsed._replace(netloc=parsed.netloc.rsplit("@", 1)[1]))


@dataclass
class GitLabConfig:
    """Connection settings for the GitLab REST API."""

    url: str = ""
    token: str = ""
    timeout: int = 30
    ssl_verify: bool = True

    @property
    def api_url(self) -> str:
        return f"{self.url.rstrip('/')}/api/v4"

    def validate(self) -> None:
        if not self.url:
            msg = "GitLab URL is required (derived from --repo-url)"
            raise ConfigError(msg)
        if not self.token:
            msg = "GitLab token is required. Set --gitlab-token or GITLAB_TOKEN"
            raise ConfigError(msg)


@dataclass(frozen=True)
class RunRequest:
    """Immutable input of one pipeline run, built once at process start."""

    repo_url: str
    username: str
    password: str
    branch: str
    tag: str = ""
    work_dir: str = "./repo"
    commit_message: str = ""
    replacer_file: str = ""
    replacer_url: str = ""
    replacer_conf: str = ""
    replacer_conf_url: str = ""
    gitlab_group_id: int = 0
    gitlab_token: str = ""
    revert: bool = False
    transform_timeout: float | None = None
    cleanup_on_failure: bool = False
    all_pages: bool = False
    open_browser: bool = True
    http_timeout: int = 30
    ssl_verify: bool = True

    @property
    def scheme(self) -> str:
        return urlparse(self.repo_url).scheme

    @property
    def host(self) -> str:
        """Host and port only; any userinfo in the URL is dropped."""
        parsed = urlparse(self.repo_url)
        host = parsed.hostname or ""
        if ":" in host:
            host = f"[{host}]"
        if parsed.port is not None:
            host = f"{host}:{parsed.port}"
        return host

    @property
    def display_url(self) -> str:
        """The repository URL without credentials, for logs."""
        return redact_url(self.repo_url)

    @property
    def repo_full_name(self) -> str:
        """Path with namespace, e.g. ``group/sub/project`` for ``.../group/sub/project.git``."""
        path = urlparse(self.repo_url).path
        return path.removesuffix(".git").strip("/")

    @property
    def gitlab_url(self) -> str:
        return f"{self.scheme}://{self.host}"

    def gitlab_config(self) -> GitLabConfig:
        return GitLabConfig(
            url=self.gitlab_url,
            token=self.gitlab_token,
            timeout=self.http_timeout,
            ssl_verify=self.ssl_verify,
        )

    def validate(self) -> None:
        parsed = urlparse(self.repo_url)
        if not parsed.scheme or not parsed.hostname:
            msg = f"Repository URL must include a scheme and host: {self.display_url!r}"
            raise ConfigError(msg)
        try:
            parsed.port
        except ValueError as e:
            msg = f"Repository URL has an invalid port: {self.display_url!r}"
            raise ConfigError(msg) from e
        if not self.branch:
            msg = "Origin branch is required. Set --branch or REPLACER_BRANCH"
            raise ConfigError(msg)
