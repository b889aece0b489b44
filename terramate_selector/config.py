"""
Configuration Module for Terramate Selector

This module contains configuration settings and data structures used throughout the application.
It defines constants and the repository git policy that control how stacks are
discovered and how the git baseline revision is resolved.

Constants:
    ROOT_CONFIG_FILENAME: Name of the repository-level configuration file
    STACK_FILENAME: Name of the file that marks a directory as a stack
    IGNORED_FOLDERS: Set of folder names never descended into during discovery
    DEFAULT_REMOTE: Git remote used when the configuration names none
    DEFAULT_BRANCH: Default branch used when the configuration names none
    DEFAULT_BRANCH_BASE_REF: Previous-deployment ref used when the configuration names none
    DEFAULT_CLOUD_API_URL: Terramate Cloud API base URL
    CLOUD_API_TIMEOUT: Timeout in seconds for cloud API requests
    OIDC_TIMEOUT: Timeout in seconds for GitHub OIDC token requests

Classes:
    GitConfig: Git policy of the repository
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
import dpath

from .exceptions import ConfigurationError

# Constants
ROOT_CONFIG_FILENAME = "terramate.tm.yaml"
STACK_FILENAME = "stack.tm.yaml"
IGNORED_FOLDERS = {".git", ".terramate", "node_modules"}
DEFAULT_REMOTE = "origin"
DEFAULT_BRANCH = "main"
DEFAULT_BRANCH_BASE_REF = "HEAD^"
DEFAULT_CLOUD_API_URL = "https://api.terramate.io"
CLOUD_API_TIMEOUT = 5.0
OIDC_TIMEOUT = 3.0
LOCAL_REPOSITORY = "local"
GIT_CONFIG_PATH = "terramate.config.git"


@dataclass(frozen=True)
class GitConfig:
    """Git policy of the repository."""

    default_remote: str = DEFAULT_REMOTE
    default_branch: str = DEFAULT_BRANCH
    default_branch_base_ref: str = DEFAULT_BRANCH_BASE_REF

    @property
    def remote_default_branch_ref(self) -> str:
        """Symbolic ref of the default branch on the default remote."""
        return f"{self.default_remote}/{self.default_branch}"

    @classmethod
    def from_root_config(cls, data: Optional[Dict[str, Any]]) -> "GitConfig":
        """Build the git policy from a parsed root configuration document.

        Absent or empty keys are filled with the defaults.

        Args:
            data: Parsed terramate.tm.yaml content, or None if the file is missing

        Returns:
            GitConfig instance

        Raises:
            ConfigurationError: If the git block is not a mapping or holds non-string values
        """
        if not data:
            return cls()

        git_block = dpath.get(data, GIT_CONFIG_PATH, separator=".", default=None)
        if git_block is None:
            return cls()
        if not isinstance(git_block, dict):
            raise ConfigurationError(f"{GIT_CONFIG_PATH} must be a mapping")

        values = {}
        for key in ("default_remote", "default_branch", "default_branch_base_ref"):
            value = git_block.get(key)
            if value is None or value == "":
                continue
            if not isinstance(value, str):
                raise ConfigurationError(f"{GIT_CONFIG_PATH}.{key} must be a string")
            values[key] = value
        return cls(**values)
