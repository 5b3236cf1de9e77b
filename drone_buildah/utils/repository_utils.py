"""Utility functions for repository operations."""

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def discover_remote_url(path: str | Path, remote: str = "origin") -> Optional[str]:
    """Return the URL of ``remote`` for the git checkout containing ``path``.

    GitPython is imported lazily; it fails to import without a ``git`` executable.

    Args:
        path: Any path inside the working tree (usually the build context).
        remote: Remote name to read.

    Returns:
        The remote URL, or None when git is unavailable, ``path`` is not in a
        git checkout, or the remote does not exist.
    """
    try:
        from git import Repo
        from git.exc import GitError, InvalidGitRepositoryError, NoSuchPathError
    except ImportError as exc:
        logger.debug("GitPython unavailable, skipping remote discovery: %s", exc)
        return None

    try:
        repo = Repo(str(path), search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        logger.debug("No git repository found at %s", path)
        return None

    try:
        return next(repo.remote(remote).urls, None)
    except (ValueError, GitError):
        logger.debug("Remote %s not configured for %s", remote, repo.working_dir)
        return None
    finally:
        repo.close()
