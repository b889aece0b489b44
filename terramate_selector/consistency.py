"""
Repository Consistency Checks

Validates that the repository is in a state where git-derived selection is
meaningful: the configured remote and default branch exist, and HEAD has not
diverged from the remote default branch.
"""

import logging

from .base_revision import GitSnapshot
from .config import GitConfig
from .exceptions import GitOperationError, GitStateError, OutOfDateError
from .git_operations import GitHistoryPort

logger = logging.getLogger(__name__)

OUT_OF_DATE_MESSAGE = "current HEAD is out-of-date with the remote base branch"
OUT_OF_DATE_HINT = "Please update the current branch with the latest changes from the default branch."


def check_default_remote(git: GitHistoryPort, git_config: GitConfig) -> None:
    """Check the configured remote and its default branch exist.

    Raises:
        GitStateError: If the remote is missing, or it has no default branch
    """
    logger.debug("Get list of configured git remotes.")
    try:
        remotes = git.remotes()
    except GitOperationError as e:
        raise GitStateError(f"checking if remote '{git_config.default_remote}' exists: {e}") from e

    default_remote = next((r for r in remotes if r.name == git_config.default_remote), None)
    if default_remote is None:
        raise GitStateError(
            f"repository must have a configured '{git_config.default_remote}' remote"
        )

    if git_config.default_branch not in default_remote.branches:
        raise GitStateError(
            f"remote '{git_config.default_remote}' has no default branch "
            f"'{git_config.default_branch}', branches: {list(default_remote.branches)}"
        )


def check_head_is_up_to_date(git: GitHistoryPort, snapshot: GitSnapshot, git_config: GitConfig) -> None:
    """Check HEAD is the remote default branch commit or strictly ahead of it.

    Raises:
        OutOfDateError: If HEAD and the remote default branch diverged
    """
    remote_desc = f"remote({git_config.remote_default_branch_ref})"
    try:
        merge_base = git.merge_base(snapshot.head_commit, snapshot.remote_default_commit)
    except GitOperationError as e:
        logger.debug(
            f"no merge-base between HEAD {snapshot.head_commit} and {remote_desc} "
            f"{snapshot.remote_default_commit}: {e}"
        )
        raise OutOfDateError(OUT_OF_DATE_MESSAGE, OUT_OF_DATE_HINT) from e

    if merge_base != snapshot.remote_default_commit:
        logger.debug(
            f"{remote_desc} {snapshot.remote_default_commit} is not the merge-base "
            f"{merge_base} of HEAD {snapshot.head_commit}"
        )
        raise OutOfDateError(OUT_OF_DATE_MESSAGE, OUT_OF_DATE_HINT)
