"""
Project root detection.

The export must run from the directory holding the stack's compose file so
that every configured relative path resolves the same way on every host.
"""

from pathlib import Path
from typing import Optional

from ..helpers.exceptions import ProjectRootError
from ..helpers.logging import get_logger

logger = get_logger(__name__)


def find_project_root(marker: str, start: Optional[Path] = None) -> Path:
    """
    Walk upward from ``start`` (default: cwd) to the first directory containing ``marker``.

    Raises:
        ProjectRootError: no ancestor contains the marker
    """
    start = Path(start if start is not None else Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if (candidate / marker).is_file():
            logger.debug(f"Project root found: {candidate}", extra={"marker": marker})
            return candidate
    raise ProjectRootError(marker, start)


def require_project_root(marker: str, cwd: Optional[Path] = None) -> Path:
    """
    Locate the project root and insist that ``cwd`` is that root.

    Raises:
        ProjectRootError: marker not found, or found only in a parent directory
    """
    cwd = Path(cwd if cwd is not None else Path.cwd()).resolve()
    root = find_project_root(marker, cwd)
    if root != cwd or not (cwd / marker).is_file():
        raise ProjectRootError(
            marker,
            cwd,
            f"Please run from the project root ({root}); '{marker}' is not in {cwd}",
        )
    return root
