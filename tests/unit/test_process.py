"""Tests for async subprocess execution."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from replacerbot.process import run

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX shell")


@pytest.mark.asyncio
async def test_success_captures_stdout():
    result = await run(["sh", "-c", "echo hello"])
    assert result.ok
    assert result.returncode == 0
    assert result.output == "hello\n"
    assert result.command == ("sh", "-c", "echo hello")


@pytest.mark.asyncio
async def test_stderr_is_merged():
    result = await run(["sh", "-c", "echo out; echo err >&2"])
    assert "out" in result.output
    assert "err" in result.output


@pytest.mark.asyncio
async def test_failure_keeps_output():
    result = await run(["sh", "-c", "echo 'parse error'; exit 3"])
    assert not result.ok
    assert result.returncode == 3
    assert "parse error" in result.output


@pytest.mark.asyncio
async def test_cwd(tmp_path: Path):
    result = await run(["pwd"], cwd=tmp_path)
    assert Path(result.output.strip()).resolve() == tmp_path.resolve()


@pytest.mark.asyncio
async def test_missing_executable(tmp_path: Path):
    result = await run([str(tmp_path / "does-not-exist")])
    assert result.returncode == -1
    assert result.output


@pytest.mark.asyncio
async def test_timeout():
    result = await run(["sleep", "5"], timeout=0.2)
    assert result.returncode == -1
    assert "timed out" in result.output


@pytest.mark.asyncio
async def test_timeout_keeps_partial_output():
    result = await run(["sh", "-c", "echo started; exec sleep 5"], timeout=0.5)
    assert result.returncode == -1
    assert result.output.startswith("started\n")
    assert result.output.endswith("Command timed out after 0.5s")
