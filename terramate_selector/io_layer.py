"""
I/O Layer for Terramate Selector

This module contains the file system operations of the application,
separated from the selection logic. It reads the repository configuration
and discovers the stacks of a project.
"""

import os
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

from .config import GitConfig, IGNORED_FOLDERS, ROOT_CONFIG_FILENAME, STACK_FILENAME
from .exceptions import ConfigurationError
from .models import Stack

logger = logging.getLogger(__name__)


class IOLayer:
    """Handles all file system reads for a project."""

    def __init__(self, root_dir: Path):
        """Initialize the I/O layer.

        Args:
            root_dir: Root directory of the project
        """
        self.root_dir = Path(root_dir)

    # -----------------------------------------------------------------------------
    # File System Operations
    # -----------------------------------------------------------------------------

    def read_yaml(self, path: Path) -> Optional[Any]:
        """Read a YAML file and return its contents.

        Args:
            path: Path to the YAML file

        Returns:
            Parsed YAML contents or None if file doesn't exist

        Raises:
            ConfigurationError: If the file is not valid YAML
        """
        file_path = Path(path)
        if not file_path.exists():
            return None

        try:
            with file_path.open(encoding="utf-8") as f:
                return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"invalid YAML in {file_path}: {e}") from e

    def read_root_config(self) -> Optional[Dict[str, Any]]:
        """Read terramate.tm.yaml at the project root."""
        data = self.read_yaml(self.root_dir / ROOT_CONFIG_FILENAME)
        if data is not None and not isinstance(data, dict):
            raise ConfigurationError(f"{ROOT_CONFIG_FILENAME} must contain a mapping")
        return data

    def load_git_config(self) -> GitConfig:
        """Load the git policy of the project, filling in defaults."""
        return GitConfig.from_root_config(self.read_root_config())

    # -----------------------------------------------------------------------------
    # Stack Discovery
    # -----------------------------------------------------------------------------

    def discover_stacks(self) -> List[Stack]:
        """Discover every stack of the project.

        Stack paths are relative to the project root in POSIX form, '.' for
        a stack at the root itself.

        Returns:
            Stacks in path order

        Raises:
            ConfigurationError: If a stack file is invalid or two stacks share an id
        """
        stacks = []
        for current, dirs, files in os.walk(self.root_dir):
            dirs[:] = sorted(d for d in dirs if d not in IGNORED_FOLDERS and not d.startswith("."))
            if STACK_FILENAME not in files:
                continue
            stack_dir = Path(current)
            rel_path = stack_dir.relative_to(self.root_dir).as_posix()
            stacks.append(self._load_stack(stack_dir / STACK_FILENAME, rel_path))

        self._check_unique_ids(stacks)
        logger.debug(f"discovered {len(stacks)} stack(s) under {self.root_dir}")
        return sorted(stacks, key=lambda stack: stack.path)

    def _load_stack(self, stack_file: Path, rel_path: str) -> Stack:
        data = self.read_yaml(stack_file) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{stack_file} must contain a mapping")

        block = data.get("stack") or {}
        if not isinstance(block, dict):
            raise ConfigurationError(f"{stack_file}: stack must be a mapping")

        meta_id = block.get("id") or ""
        if not isinstance(meta_id, str):
            raise ConfigurationError(f"{stack_file}: stack.id must be a string")

        tags = block.get("tags") or []
        if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
            raise ConfigurationError(f"{stack_file}: stack.tags must be a list of strings")

        return Stack(
            path=rel_path,
            meta_id=meta_id,
            name=str(block.get("name") or stack_file.parent.name),
            description=str(block.get("description") or ""),
            tags=frozenset(tags),
        )

    @staticmethod
    def _check_unique_ids(stacks: List[Stack]) -> None:
        seen = {}
        for stack in stacks:
            if not stack.has_id:
                continue
            if stack.meta_id in seen:
                raise ConfigurationError(
                    f"duplicated stack id '{stack.meta_id}' in {seen[stack.meta_id]} and {stack.path}"
                )
            seen[stack.meta_id] = stack.path


def find_project_root(wd: Path, git_root: Optional[Path] = None) -> Path:
    """Locate the project root for a working directory.

    The git top-level directory wins; outside git the nearest ancestor holding
    terramate.tm.yaml is used, otherwise the working directory itself.
    """
    if git_root is not None:
        return Path(git_root)
    wd = Path(wd).resolve()
    for candidate in (wd, *wd.parents):
        if (candidate / ROOT_CONFIG_FILENAME).is_file():
            return candidate
    return wd
