"""Base model for GitLab API responses."""

from __future__ import annotations

from pydantic import BaseModel


class GitLabModel(BaseModel):
    """Base model ignoring the API fields replacerbot does not use."""

    model_config = {"extra": "ignore", "populate_by_name": True}
