"""
Project Module

The invocation context: where the project lives, its git policy, its git
repository (if any) and the stacks it contains. Values observed from git are
computed by explicit calls and handed to the checks, never cached behind the
caller's back.
"""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional

from .base_revision import GitSnapshot, RevisionResolver
from .config import GitConfig
from .consistency import check_default_remote, check_head_is_up_to_date
from .exceptions import GitOperationError, GitStateError
from .git_operations import GitHistoryPort, normalize_git_uri, open_repository
from .io_layer import IOLayer, find_project_root
from .models import Stack

logger = logging.getLogger(__name__)


@dataclass
class Project:
    """A Terramate project seen from a working directory."""

    root_dir: Path
    wd: Path
    io_layer: IOLayer
    git_config: GitConfig
    git: Optional[GitHistoryPort] = None

    @classmethod
    def load(cls, wd: Path) -> "Project":
        """Open the project containing wd.

        Raises:
            ConfigurationError: If the root configuration is invalid
        """
        wd = Path(wd).resolve()
        repo = open_repository(wd)
        git_root = repo.root_dir.resolve() if repo is not None else None
        root_dir = find_project_root(wd, git_root)
        io_layer = IOLayer(root_dir)

        logger.debug(f"project root {root_dir}, working dir {wd}, git: {repo is not None}")
        return cls(
            root_dir=root_dir,
            wd=wd,
            io_layer=io_layer,
            git_config=io_layer.load_git_config(),
            git=repo,
        )

    @property
    def is_repo(self) -> bool:
        return self.git is not None

    def normalized_repository(self) -> str:
        """Normalized URL of the default remote, '' when it cannot be determined."""
        if not self.is_repo:
            return ""
        try:
            url = self.git.url(self.git_config.default_remote)
        except GitOperationError as e:
            logger.warning(f"failed to retrieve repository URL: {e}")
            return ""
        return normalize_git_uri(url)

    def list_stacks(self) -> List[Stack]:
        """Stacks at or below the working directory, with paths relative to it."""
        stacks = []
        for stack in self.io_layer.discover_stacks():
            try:
                rel = (self.root_dir / stack.path).relative_to(self.wd)
            except ValueError:
                continue
            stacks.append(replace(stack, path=rel.as_posix()))
        return stacks

    def check_repository(self) -> GitSnapshot:
        """Run the git consistency checks.

        Returns:
            The snapshot of HEAD and the remote default branch commit

        Raises:
            GitStateError: If the project is not a git repository or any check fails
        """
        if not self.is_repo:
            raise GitStateError(f"{self.root_dir} is not a git repository")
        check_default_remote(self.git, self.git_config)
        snapshot = GitSnapshot.capture(self.git, self.git_config)
        check_head_is_up_to_date(self.git, snapshot, self.git_config)
        return snapshot

    def base_revision(self, override: str = "") -> str:
        """Revision change detection diffs against; override wins when given."""
        if override:
            return override
        if not self.is_repo:
            raise GitStateError(f"{self.root_dir} is not a git repository")
        return RevisionResolver(self.git, self.git_config).resolve()
