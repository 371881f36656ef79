"""Git operations — open the upstream repo and resolve revisions."""

from __future__ import annotations

import logging
from pathlib import Path

from git import Commit, InvalidGitRepositoryError, NoSuchPathError, Repo
from git.exc import BadName, BadObject

from portsync.errors import RangeResolutionError

logger = logging.getLogger(__name__)


def open_repo(repo_path: str | Path) -> Repo:
    """Open a local Git repository, searching parent directories.

    Raises:
        ValueError: If the path is not inside a Git repository.
    """
    try:
        return Repo(repo_path, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        raise ValueError(f"Not a Git repository: {repo_path}")


def resolve_revision(repo: Repo, revision: str) -> Commit:
    """Resolve a branch, tag, or SHA to a commit.

    Raises:
        RangeResolutionError: If the revision is empty or unknown.
    """
    if not revision:
        raise RangeResolutionError(revision, "no revision given")
    try:
        commit = repo.commit(revision)
    except (BadName, BadObject, ValueError) as e:
        raise RangeResolutionError(revision, str(e) or type(e).__name__) from e
    logger.debug("Resolved %s to %s", revision, commit.hexsha[:12])
    return commit

