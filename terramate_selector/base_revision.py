"""
Base Revision Module

Decides which git revision change detection diffs HEAD against.

Given origin/main is the default remote/branch at commit C, C is assumed to be
the state of the last deployment. HEAD is at commit H. The cases below are
evaluated in order and the first match wins.

Pending changes are compared to origin/main:
    1. H != C and H is not an ancestor of C (undeployed, unmerged commit)
    2. H == C and the current branch is not the default branch (new, empty branch)

Deployed changes are compared to the previous deployment (default_branch_base_ref):
    3. H == C on the default branch (latest default branch commit)
    4. H is a first-parent ancestor of origin/main (previous default branch commit)

Historic changes are compared to the fork point with origin/main:
    5. H has a fork point with origin/main (commit of an already merged branch)

Anything else falls back to the previous deployment.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from .config import GitConfig
from .exceptions import GitOperationError, GitStateError
from .git_operations import GitHistoryPort
from .models import Probe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GitSnapshot:
    """Commits observed once per invocation and shared by the git checks."""

    head_commit: str
    remote_default_commit: str

    @classmethod
    def capture(cls, git: GitHistoryPort, git_config: GitConfig) -> "GitSnapshot":
        """Resolve HEAD and the remote default branch commit.

        Raises:
            GitStateError: If either commit cannot be determined
        """
        try:
            head_commit = git.rev_parse("HEAD")
        except GitOperationError as e:
            raise GitStateError(f"resolving HEAD: {e}") from e

        try:
            remote_ref = git.fetch_remote_rev(git_config.default_remote, git_config.default_branch)
        except GitOperationError as e:
            raise GitStateError(
                f"fetching remote commit of {git_config.remote_default_branch_ref}: {e}"
            ) from e

        return cls(head_commit=head_commit, remote_default_commit=remote_ref.commit_id)


def probe(check: Callable[..., bool], *args: str) -> Probe:
    """Run a boolean git query, mapping a failure to Probe.INDETERMINATE."""
    try:
        return Probe.of(check(*args))
    except GitOperationError as e:
        logger.debug(f"git probe {getattr(check, '__name__', check)}{args} failed: {e}")
        return Probe.INDETERMINATE


class RevisionResolver:
    """Resolves the baseline revision for change detection."""

    def __init__(self, git: GitHistoryPort, git_config: GitConfig):
        self.git = git
        self.git_config = git_config

    def _rev_parse_or_empty(self, ref: str) -> str:
        try:
            return self.git.rev_parse(ref)
        except GitOperationError as e:
            logger.debug(f"rev-parse {ref} failed: {e}")
            return ""

    def _current_branch_or_empty(self) -> str:
        try:
            return self.git.current_branch()
        except GitOperationError as e:
            logger.debug(f"current branch unavailable: {e}")
            return ""

    def _fork_point_or_empty(self, a: str, b: str) -> str:
        try:
            return self.git.find_fork_point(a, b)
        except GitOperationError as e:
            logger.debug(f"fork point of {a} and {b} unavailable: {e}")
            return ""

    def resolve(self) -> str:
        """Return the revision HEAD should be compared against.

        Never fails: a failing git probe counts as a negative answer, so a
        failed ancestry check selects the remote default branch and a failed
        first-parent or fork-point check moves on to the next case.
        """
        remote_ref = self.git_config.remote_default_branch_ref
        base_ref = self.git_config.default_branch_base_ref

        head_rev = self._rev_parse_or_empty("HEAD")
        remote_rev = self._rev_parse_or_empty(remote_ref)
        is_remote_default_rev = bool(head_rev) and head_rev == remote_rev

        head_in_remote = probe(self.git.is_ancestor, "HEAD", remote_ref)
        if not is_remote_default_rev and head_in_remote is not Probe.TRUE:
            logger.debug(f"HEAD has unmerged commits, comparing with {remote_ref}")
            return remote_ref

        branch = self._current_branch_or_empty()
        is_default_branch = bool(branch) and branch == self.git_config.default_branch

        if is_remote_default_rev and not is_default_branch:
            logger.debug(f"HEAD is a new branch without commits, comparing with {remote_ref}")
            return remote_ref

        if is_remote_default_rev:
            logger.debug(f"HEAD is the latest deployment, comparing with {base_ref}")
            return base_ref

        if probe(self.git.is_first_parent_ancestor, remote_ref, "HEAD") is Probe.TRUE:
            logger.debug(f"HEAD is a previous deployment, comparing with {base_ref}")
            return base_ref

        fork_point = self._fork_point_or_empty(remote_ref, "HEAD")
        if fork_point:
            logger.debug(f"HEAD belongs to a merged branch, comparing with fork point {fork_point}")
            return fork_point

        logger.debug(f"no case matched, comparing with {base_ref}")
        return base_ref
