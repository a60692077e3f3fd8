"""GitLab merge request links."""

from __future__ import annotations

import logging
import webbrowser

logger = logging.getLogger(__name__)

_NEW_MR_URL = (
    "{scheme}://{host}/{full_path}/merge_requests/new?utf8=✓"
    "&merge_request[source_project_id]={project_id}"
    "&merge_request[source_branch]={source_branch}"
    "&merge_request[target_project_id]={project_id}"
    "&merge_request[target_branch]={target_branch}"
)


def build_merge_request_link(
    scheme: str,
    host: str,
    full_path: str,
    source_branch: str,
    target_branch: str,
    project_id: int,
) -> str:
    """Return the "new merge request" URL pre-filled with both branches.

    Only the square brackets of the query keys are percent-encoded. Paths and
    branch names are inserted verbatim.
    """
    url = _NEW_MR_URL.format(
        scheme=scheme,
        host=host,
        full_path=full_path,
        project_id=project_id,
        source_branch=source_branch,
        target_branch=target_branch,
    )
    return url.replace("[", "%5B").replace("]", "%5D")


def open_in_browser(url: str) -> bool:
    """Best-effort open of *url*; never raises."""
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        logger.warning("Could not open browser: %s", e)
        return False
    if not opened:
        logger.warning("No browser available to open the merge request link")
    return opened
