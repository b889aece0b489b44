"""
Git Operations Module for Terramate Selector

This module handles the git queries the selection core depends on.
It defines the GitHistoryPort capability and provides its production
implementation on top of GitPython.

Classes:
    GitHistoryPort: Protocol describing the git queries used by the core
    GitRepository: GitPython-backed implementation of GitHistoryPort

Functions:
    open_repository: Opens the git work tree containing a directory, if any
    normalize_git_uri: Canonicalizes a remote URL for cross-system matching

Raises:
    GitOperationError: When git operations fail
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Protocol
from urllib.parse import urlparse

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from .config import LOCAL_REPOSITORY
from .exceptions import GitOperationError
from .models import Remote, RemoteRef

logger = logging.getLogger(__name__)

_SCP_LIKE = re.compile(r"^(?:[^@/]+@)?([^:/]+):(.+)$")
_WINDOWS_PATH = re.compile(r"^[A-Za-z]:[\\/]")


class GitHistoryPort(Protocol):
    """Git queries consumed by the selection core.

    Every method returns a value or raises GitOperationError.
    """

    def rev_parse(self, ref: str) -> str:
        """Resolve a ref to a commit ID."""
        ...

    def current_branch(self) -> str:
        """Name of the checked-out branch."""
        ...

    def is_ancestor(self, a: str, b: str) -> bool:
        """Whether a is an ancestor of b."""
        ...

    def is_first_parent_ancestor(self, descendant: str, ancestor: str) -> bool:
        """Whether ancestor is on the first-parent chain of descendant."""
        ...

    def find_fork_point(self, a: str, b: str) -> str:
        """Fork point of b relative to a, or '' when there is none."""
        ...

    def merge_base(self, a: str, b: str) -> str:
        """Best common ancestor of a and b."""
        ...

    def remotes(self) -> List[Remote]:
        """Configured remotes with their known branches."""
        ...

    def fetch_remote_rev(self, remote: str, branch: str) -> RemoteRef:
        """Commit a branch currently points to on a remote."""
        ...

    def url(self, remote: str) -> str:
        """URL configured for a remote."""
        ...


class GitRepository:
    """GitHistoryPort implementation running git through GitPython."""

    def __init__(self, repo: Repo):
        """Initialize the adapter.

        Args:
            repo: GitPython repository object
        """
        self.repo = repo

    @property
    def root_dir(self) -> Path:
        return Path(self.repo.working_tree_dir)

    def _git(self, command: str, *args: str) -> str:
        try:
            return getattr(self.repo.git, command)(*args).strip()
        except GitCommandError as e:
            raise GitOperationError(
                f"git {command.replace('_', '-')} {' '.join(args)}: {e.stderr.strip() or e}"
            ) from e

    def rev_parse(self, ref: str) -> str:
        return self._git("rev_parse", "--verify", "--quiet", f"{ref}^{{commit}}")

    def current_branch(self) -> str:
        return self._git("symbolic_ref", "--short", "HEAD")

    def is_ancestor(self, a: str, b: str) -> bool:
        try:
            return self.repo.is_ancestor(a, b)
        except GitCommandError as e:
            raise GitOperationError(f"checking if {a} is an ancestor of {b}: {e}") from e

    def is_first_parent_ancestor(self, descendant: str, ancestor: str) -> bool:
        ancestor_commit = self.rev_parse(ancestor)
        if ancestor_commit == self.rev_parse(descendant):
            return True
        # The walk stops at the first commit reachable from ancestor; that
        # commit is ancestor itself only when it lies on the first-parent chain.
        chain = self._git("rev_list", "--first-parent", f"{ancestor_commit}..{descendant}").split()
        if not chain:
            return False
        parents = self._git("rev_list", "--parents", "-n", "1", chain[-1]).split()[1:]
        return bool(parents) and parents[0] == ancestor_commit

    def find_fork_point(self, a: str, b: str) -> str:
        try:
            return self.repo.git.merge_base("--fork-point", a, b).strip()
        except GitCommandError as e:
            # Exit status 1 without output means there is no fork point.
            if e.status == 1 and not str(e.stderr).strip():
                return ""
            raise GitOperationError(f"finding fork point of {a} and {b}: {e}") from e

    def merge_base(self, a: str, b: str) -> str:
        return self._git("merge_base", a, b)

    def remotes(self) -> List[Remote]:
        names = self._git("remote").split()
        remotes = []
        for name in names:
            prefix = f"refs/remotes/{name}/"
            refs = self._git("for_each_ref", "--format=%(refname)", prefix.rstrip("/")).splitlines()
            branches = tuple(
                ref[len(prefix):] for ref in refs
                if ref.startswith(prefix) and ref[len(prefix):] != "HEAD"
            )
            remotes.append(Remote(name=name, branches=branches))
        return remotes

    def fetch_remote_rev(self, remote: str, branch: str) -> RemoteRef:
        output = self._git("ls_remote", remote, f"refs/heads/{branch}")
        for line in output.splitlines():
            commit_id, _, ref = line.partition("\t")
            if ref.strip() == f"refs/heads/{branch}":
                return RemoteRef(remote=remote, branch=branch, commit_id=commit_id.strip())
        raise GitOperationError(f"remote {remote} has no branch {branch}")

    def url(self, remote: str) -> str:
        return self._git("remote", "get-url", remote)


def open_repository(path: Path) -> Optional[GitRepository]:
    """Open the git work tree containing path.

    Returns:
        GitRepository, or None when path is not inside a git work tree
    """
    try:
        repo = Repo(path, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        logger.debug(f"{path} is not inside a git repository")
        return None
    if repo.bare:
        return None
    return GitRepository(repo)


def normalize_git_uri(raw_url: str) -> str:
    """Canonicalize a git remote URL into host/owner/repo form.

    Examples:
        git@github.com:owner/repo.git -> github.com/owner/repo
        https://github.com/owner/repo.git -> github.com/owner/repo
        /srv/git/repo.git -> local

    Args:
        raw_url: URL as configured on the remote

    Returns:
        Normalized repository string, 'local' for filesystem remotes, '' for empty input
    """
    url = raw_url.strip()
    if not url:
        return ""

    if url.startswith(("file://", "/", "./", "../", "~")) or url == "." or _WINDOWS_PATH.match(url):
        return LOCAL_REPOSITORY

    if "://" in url:
        parsed = urlparse(url)
        host = parsed.hostname or ""
        path = parsed.path
    elif match := _SCP_LIKE.match(url):
        host, path = match.group(1), match.group(2)
    else:
        host, _, path = url.partition("/")
        if "." not in host:
            return LOCAL_REPOSITORY

    path = path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    if not host or not path:
        return LOCAL_REPOSITORY
    return f"{host.lower()}/{path}"
