"""Fetch and run the external replacer tool."""

from __future__ import annotations

import logging
import stat
from pathlib import Path

import httpx

from .exceptions import FetchError, TransformError
from .process import run as run_process

logger = logging.getLogger(__name__)


def build_args(root: str, tag: str, conf: str, conf_url: str, revert: bool) -> list[str]:
    """Command-line flags understood by the replacer."""
    args = [
        f"-root={root}",
        f"-tag={tag}",
        f"-conf={conf}",
        f"-conf_url={conf_url}",
    ]
    if revert:
        args.append("-revert")
    return args


class TransformInvoker:
    """Downloads the replacer when asked to and runs it against a directory.

    The replacer resolves its own config (local file or URL) and edits files
    in place; only its exit status and combined output are inspected here.
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        http_timeout: float = 30,
        ssl_verify: bool = True,
    ) -> None:
        self.timeout = timeout
        self.http_timeout = http_timeout
        self.ssl_verify = ssl_verify

    async def fetch(self, url: str, dest: str | Path) -> Path:
        """Download *url* to *dest* and make it executable."""
        path = Path(dest)
        logger.info("Downloading replacer %s -> %s", url, path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with httpx.AsyncClient(
                follow_redirects=True, timeout=self.http_timeout, verify=self.ssl_verify
            ) as client:
                async with client.stream("GET", url) as resp:
                    resp.raise_for_status()
                    with path.open("wb") as f:
                        async for chunk in resp.aiter_bytes():
                            f.write(chunk)
            path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        except (httpx.HTTPError, OSError) as e:
            logger.error("Downloading replacer %s failed: %s", url, e)
            raise FetchError(url, str(e)) from e
        return path

    async def invoke(
        self,
        root: str | Path,
        tag: str,
        conf: str,
        conf_url: str,
        replacer_file: str,
        replacer_url: str = "",
        revert: bool = False,
    ) -> str:
        """Run the replacer on *root* and return its combined output.

        Raises:
            FetchError: *replacer_url* was given and could not be downloaded.
            TransformError: the replacer could not start, timed out, or exited non-zero.
        """
        if replacer_url:
            await self.fetch(replacer_url, replacer_file)

        cmd = [replacer_file, *build_args(str(root), tag, conf, conf_url, revert)]
        logger.debug("Running %s", " ".join(cmd))
        result = await run_process(cmd, timeout=self.timeout)
        if result.ok:
            logger.info("Replacer succeeded")
        else:
            logger.error("Replacer failed (exit %d)", result.returncode)
        logger.info("Replacer output:\n%s", result.output)
        if not result.ok:
            raise TransformError(result.returncode, result.output)
        return result.output
