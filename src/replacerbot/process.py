"""Async subprocess execution with merged output capture.

Used for both git and the replacer tool. Failures to start a process and
timeouts are reported through the returned :class:`ProcessResult` rather than
raised, so callers decide which error type a failure maps to.

Usage:
    result = await run(["git", "status"], cwd=repo_path)
    if not result.ok:
        raise SomeError(result.returncode, result.output)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

__all__ = ["ProcessResult", "run"]


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Outcome of a subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: Exit code, or -1 if the process could not start or timed out.
        output: Standard output and standard error, interleaved.
    """

    command: tuple[str, ...]
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def run(
    cmd: list[str],
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> ProcessResult:
    """Execute *cmd* and capture its combined output.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Full environment for the child (inherits the current one if None).
        timeout: Maximum seconds to wait; None waits indefinitely. Output read
            before the deadline is kept in the result.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=str(cwd) if cwd is not None else None,
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        return ProcessResult(command=tuple(cmd), returncode=-1, output=str(e))

    chunks: list[bytes] = []

    async def drain() -> None:
        assert proc.stdout is not None
        while chunk := await proc.stdout.read(65536):
            chunks.append(chunk)
        await proc.wait()

    try:
        await asyncio.wait_for(drain(), timeout=timeout)
    except TimeoutError:
        proc.kill()
        await proc.wait()
        logger.warning("Killed %s after %ss", cmd[0], timeout)
        partial = b"".join(chunks).decode("utf-8", errors="replace").rstrip("\n")
        return ProcessResult(
            command=tuple(cmd),
            returncode=-1,
            output=f"{partial}\nCommand timed out after {timeout}s".lstrip("\n"),
        )

    return ProcessResult(
        command=tuple(cmd),
        returncode=proc.returncode if proc.returncode is not None else -1,
        output=b"".join(chunks).decode("utf-8", errors="replace"),
    )
