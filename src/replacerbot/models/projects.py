"""Project models returned by ``/groups/:id/projects``."""

from __future__ import annotations

from .base import GitLabModel


class Namespace(GitLabModel):
    id: int
    name: str = ""
    path: str = ""
    kind: str = ""
    full_path: str = ""


class Project(GitLabModel):
    id: int
    name: str = ""
    path: str = ""
    path_with_namespace: str = ""
    default_branch: str | None = None
    web_url: str = ""
    ssh_url_to_repo: str = ""
    http_url_to_repo: str = ""
    namespace: Namespace | None = None

    def matches(self, full_path: str) -> bool:
        """Exact, case-insensitive comparison against a ``group/project`` path."""
        return self.path_with_namespace.lower() == full_path.lower()
