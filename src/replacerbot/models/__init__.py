"""Pydantic models for the GitLab API payloads replacerbot consumes."""

from .base import GitLabModel
from .projects import Namespace, Project

__all__ = ["GitLabModel", "Namespace", "Project"]
