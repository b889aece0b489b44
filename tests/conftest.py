"""Test fixtures for Terramate Selector.

This module provides shared fixtures used across multiple test modules.

Fixtures:
    build_tree: Creates stack layouts from short layout descriptions
    fake_git: In-memory GitHistoryPort with scriptable answers
    git_sandbox: A real git repository with a bare 'origin' remote
"""

from pathlib import Path
from typing import Dict, List, Optional

import pytest
import yaml
from git import Repo

from terramate_selector.exceptions import GitOperationError
from terramate_selector.models import Remote, RemoteRef


def write_stack(stack_dir: Path, meta_id: str = "", tags: Optional[List[str]] = None) -> Path:
    """Create a stack.tm.yaml in stack_dir."""
    stack_dir.mkdir(parents=True, exist_ok=True)
    block = {}
    if meta_id:
        block["id"] = meta_id
    if tags:
        block["tags"] = list(tags)
    with open(stack_dir / "stack.tm.yaml", "w", encoding="utf-8") as f:
        yaml.dump({"stack": block} if block else {}, f)
    return stack_dir


def build_layout(base_dir: Path, layout: List[str]) -> None:
    """Create stacks from layout entries.

    Each entry looks like 's:<path>[:id=<id>][:tags=<a;b>]'.
    """
    for entry in layout:
        kind, path, *attrs = entry.split(":")
        assert kind == "s", f"unsupported layout entry {entry}"
        options = dict(attr.split("=", 1) for attr in attrs)
        tags = options["tags"].split(";") if "tags" in options else None
        write_stack(base_dir / path, meta_id=options.get("id", ""), tags=tags)


@pytest.fixture
def build_tree():
    """Returns the layout builder."""
    return build_layout


class FakeGit:
    """In-memory GitHistoryPort.

    Every answer is configured through attributes; a value that is an
    Exception instance is raised instead of returned.
    """

    def __init__(self):
        self.revs: Dict[str, str] = {}
        self.branch = "main"
        self.ancestors: Dict[tuple, object] = {}
        self.first_parent_ancestors: Dict[tuple, object] = {}
        self.fork_points: Dict[tuple, object] = {}
        self.merge_bases: Dict[tuple, object] = {}
        self.remote_list: object = [Remote("origin", ("main",))]
        self.remote_revs: Dict[tuple, object] = {}
        self.urls: Dict[str, object] = {}

    @staticmethod
    def _answer(value):
        if isinstance(value, Exception):
            raise value
        return value

    def rev_parse(self, ref):
        if ref not in self.revs:
            raise GitOperationError(f"unknown revision {ref}")
        return self._answer(self.revs[ref])

    def current_branch(self):
        return self._answer(self.branch)

    def is_ancestor(self, a, b):
        return self._answer(self.ancestors.get((a, b), False))

    def is_first_parent_ancestor(self, descendant, ancestor):
        return self._answer(self.first_parent_ancestors.get((descendant, ancestor), False))

    def find_fork_point(self, a, b):
        return self._answer(self.fork_points.get((a, b), ""))

    def merge_base(self, a, b):
        if (a, b) not in self.merge_bases:
            raise GitOperationError(f"no merge base for {a} and {b}")
        return self._answer(self.merge_bases[(a, b)])

    def remotes(self):
        return self._answer(self.remote_list)

    def fetch_remote_rev(self, remote, branch):
        value = self._answer(self.remote_revs.get((remote, branch), GitOperationError("no such ref")))
        return RemoteRef(remote=remote, branch=branch, commit_id=value)

    def url(self, remote):
        if remote not in self.urls:
            raise GitOperationError(f"no such remote '{remote}'")
        return self._answer(self.urls[remote])


@pytest.fixture
def fake_git():
    """Provides an empty FakeGit."""
    return FakeGit()


class GitSandbox:
    """A work tree cloned from a bare 'origin' repository."""

    def __init__(self, base_dir: Path):
        self.origin_dir = base_dir / "origin.git"
        self.root = base_dir / "repo"
        Repo.init(self.origin_dir, bare=True)
        self.repo = Repo.init(self.root)
        with self.repo.config_writer() as cw:
            cw.set_value("user", "name", "Sandbox")
            cw.set_value("user", "email", "sandbox@example.com")
            cw.set_value("commit", "gpgsign", "false")
        self.commit("initial")
        self.repo.git.branch("-M", "main")
        self.repo.create_remote("origin", str(self.origin_dir))
        self.push("main")

    def commit(self, name: str) -> str:
        """Write a file named after the commit and commit it."""
        (self.root / f"{name}.txt").write_text(f"{name}\n")
        self.repo.git.add(f"{name}.txt")
        self.repo.git.commit("-m", name)
        return self.head()

    def head(self) -> str:
        return self.repo.head.commit.hexsha

    def checkout(self, ref: str, create: bool = False) -> None:
        if create:
            self.repo.git.checkout("-b", ref)
        else:
            self.repo.git.checkout(ref)

    def push(self, branch: str) -> None:
        self.repo.git.push("-u", "origin", branch)


@pytest.fixture
def git_sandbox(tmp_path):
    """Provides a git repository with a pushed 'main' branch on 'origin'."""
    return GitSandbox(tmp_path)
