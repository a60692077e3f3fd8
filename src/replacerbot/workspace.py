"""Per-run working directories."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from .exceptions import WorkspaceError

logger = logging.getLogger(__name__)


def prepare_workspace(save_path: str | Path, repo_full_name: str) -> Path:
    """Create a fresh directory for one run and return its absolute path.

    The directory lives under *save_path* (created with parents if missing) and
    is named after *repo_full_name* with ``/`` replaced by ``-``, followed by a
    random suffix. It is never reused and is left in place after the run.
    """
    root = Path(save_path)
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WorkspaceError(str(root), str(e)) from e

    prefix = repo_full_name.replace("/", "-") + "-"
    try:
        path = Path(tempfile.mkdtemp(prefix=prefix, dir=root))
    except OSError as e:
        raise WorkspaceError(str(root), str(e)) from e

    path = path.resolve()
    logger.debug("Prepared workspace %s", path)
    return path


def remove_workspace(path: Path) -> None:
    """Delete a workspace; errors are logged, never raised."""
    try:
        shutil.rmtree(path)
    except OSError as e:
        logger.warning("Could not remove workspace %s: %s", path, e)
    else:
        logger.info("Removed workspace %s", path)
