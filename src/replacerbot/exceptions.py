"""Replacerbot exceptions.

Every pipeline stage raises a subclass of :class:`ReplacerError`; none of them
are retried.
"""

from __future__ import annotations


class ReplacerError(Exception):
    """Base exception for replacerbot operations."""


class ConfigError(ReplacerError, ValueError):
    """Raised when a run request is missing or has invalid values."""


class WorkspaceError(ReplacerError):
    """Raised when the working directory cannot be prepared."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot prepare workspace {path}: {reason}")


class GitError(ReplacerError):
    """Raised when a git command fails."""

    def __init__(self, command: str, returncode: int, output: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.output = output
        message = f"git {command} failed (exit {returncode})"
        if output:
            message = f"{message}: {output.strip()}"
        super().__init__(message)


class CloneError(GitError):
    """Raised when cloning the origin branch fails."""


class CheckoutError(GitError):
    """Raised when the working branch cannot be created."""


class CommitError(GitError):
    """Raised when committing fails, including when there is nothing to commit."""


class PushError(GitError):
    """Raised when pushing the working branch fails."""


class FetchError(ReplacerError):
    """Raised when the replacer binary cannot be downloaded."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Download of {url} failed: {reason}")


class TransformError(ReplacerError):
    """Raised when the replacer exits non-zero, cannot start, or times out."""

    def __init__(self, returncode: int, output: str = "") -> None:
        self.returncode = returncode
        self.output = output
        super().__init__(f"Replacer failed (exit {returncode}): {output.strip()}")


class ApiError(ReplacerError):
    """Raised when the GitLab API call fails or returns an unusable body."""

    def __init__(self, status_code: int, status_text: str, body: str = "") -> None:
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        super().__init__(f"GitLab API Error {status_code} {status_text}: {body}")


class GitLabAuthError(ApiError):
    """Raised on 401/403 authentication failures."""

    def __init__(self, status_code: int, body: str = "") -> None:
        status_text = "Unauthorized" if status_code == 401 else "Forbidden"
        super().__init__(status_code, status_text, body)


class GitLabNotFoundError(ApiError):
    """Raised on 404 responses, e.g. an unknown group id."""

    def __init__(self, body: str = "") -> None:
        super().__init__(404, "Not Found", body)


class ProjectNotFoundError(ReplacerError):
    """Raised when no project in the group matches the repository path."""

    def __init__(self, group_id: int, full_path: str) -> None:
        self.group_id = group_id
        self.full_path = full_path
        super().__init__(f"No project matching {full_path!r} in group {group_id}")
