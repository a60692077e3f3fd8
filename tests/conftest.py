"""Shared test fixtures for replacerbot."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path

import pytest
import respx

from replacerbot.client import GitLabClient
from replacerbot.config import GitLabConfig

TEST_URL = "https://gitlab.example.com"
TEST_TOKEN = "test-token"

_GIT_ENV = {
    **os.environ,
    "GIT_AUTHOR_NAME": "seed",
    "GIT_AUTHOR_EMAIL": "seed@example.com",
    "GIT_COMMITTER_NAME": "seed",
    "GIT_COMMITTER_EMAIL": "seed@example.com",
    "GIT_CONFIG_NOSYSTEM": "1",
}


def git(*args: str, cwd: Path) -> str:
    """Run git synchronously for test setup and assertions."""
    proc = subprocess.run(
        ["git", *args], cwd=cwd, env=_GIT_ENV, capture_output=True, text=True, check=True
    )
    return proc.stdout


@pytest.fixture
def config() -> GitLabConfig:
    return GitLabConfig(url=TEST_URL, token=TEST_TOKEN)


@pytest.fixture
def client(config: GitLabConfig) -> GitLabClient:
    return GitLabClient(config)


@pytest.fixture
def mock_api() -> respx.MockRouter:
    with respx.mock(base_url="https://gitlab.example.com/api/v4") as router:
        yield router


@pytest.fixture
def run_git():
    return git


@pytest.fixture
def origin(tmp_path: Path) -> Path:
    """A bare repository with one commit on ``main``, usable as a ``file://`` remote."""
    bare = tmp_path / "origin.git"
    git("init", "--bare", "-b", "main", str(bare), cwd=tmp_path)

    seed = tmp_path / "seed"
    git("init", "-b", "main", str(seed), cwd=tmp_path)
    (seed / "app.conf").write_text("endpoint=https://old.example.com\n", encoding="utf-8")
    git("add", "--all", cwd=seed)
    git("commit", "-m", "initial", cwd=seed)
    git("remote", "add", "origin", bare.as_uri(), cwd=seed)
    git("push", "origin", "main", cwd=seed)
    return bare
