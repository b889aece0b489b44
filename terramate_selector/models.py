"""Data models shared by the selection pipeline."""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple
from enum import Enum


class StackStatus(Enum):
    """Overall stack status as reported by Terramate Cloud."""
    OK = "ok"
    UNKNOWN = "unknown"
    DRIFTED = "drifted"
    FAILED = "failed"
    CANCELED = "canceled"


class DeploymentStatus(Enum):
    """Status of the last deployment of a stack."""
    OK = "ok"
    PENDING = "pending"
    RUNNING = "running"
    FAILED = "failed"
    CANCELED = "canceled"


class DriftStatus(Enum):
    """Status of the last drift detection of a stack."""
    OK = "ok"
    UNKNOWN = "unknown"
    DRIFTED = "drifted"
    FAILED = "failed"


class StatusFilter(Enum):
    """Values accepted by --experimental-status."""
    UNHEALTHY = "unhealthy"


class Probe(Enum):
    """Outcome of a git ancestry probe."""
    TRUE = "true"
    FALSE = "false"
    INDETERMINATE = "indeterminate"  # the probe itself failed

    @classmethod
    def of(cls, value: bool) -> "Probe":
        return cls.TRUE if value else cls.FALSE


@dataclass(frozen=True)
class Stack:
    """A stack discovered in the local repository."""
    path: str
    meta_id: str = ""
    name: str = ""
    description: str = ""
    tags: FrozenSet[str] = frozenset()

    @property
    def has_id(self) -> bool:
        return bool(self.meta_id)


@dataclass(frozen=True)
class RemoteStackStatus:
    """A stack record fetched from Terramate Cloud."""
    id: int
    meta_id: str
    repository: str
    status: StackStatus
    deployment_status: Optional[DeploymentStatus] = None
    drift_status: Optional[DriftStatus] = None

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "RemoteStackStatus":
        """Build a record from one entry of the cloud stacks response.

        Args:
            item: Decoded JSON object for a single stack

        Returns:
            RemoteStackStatus instance

        Raises:
            KeyError: If a required field is missing
            ValueError: If a status field holds an unknown value
        """
        deployment = item.get("deployment_status")
        drift = item.get("drift_status")
        return cls(
            id=int(item["stack_id"]),
            meta_id=item.get("meta_id", ""),
            repository=item.get("repository", ""),
            status=StackStatus(item["status"]),
            deployment_status=DeploymentStatus(deployment) if deployment else None,
            drift_status=DriftStatus(drift) if drift else None,
        )


@dataclass(frozen=True)
class Remote:
    """A configured git remote and the branches known for it."""
    name: str
    branches: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RemoteRef:
    """A branch reference resolved on a remote."""
    remote: str
    branch: str
    commit_id: str


@dataclass(frozen=True)
class FilterCriteria:
    """Selection criteria collected from the command line."""
    include_tags: FrozenSet[str] = frozenset()
    exclude_tags: FrozenSet[str] = frozenset()
    status: Optional[StatusFilter] = None


@dataclass
class SelectionResult:
    """Ordered outcome of a selection."""
    stacks: List[Stack] = field(default_factory=list)

    @property
    def paths(self) -> List[str]:
        return [stack.path for stack in self.stacks]

    def render(self) -> str:
        """Newline-joined paths with a trailing newline, or '' when empty."""
        if not self.stacks:
            return ""
        return "\n".join(self.paths) + "\n"


def split_tag_values(values: Iterable[str]) -> FrozenSet[str]:
    """Flatten repeated, possibly comma separated, tag flag values."""
    tags = set()
    for value in values:
        for tag in value.split(","):
            tag = tag.strip()
            if tag:
                tags.add(tag)
    return frozenset(tags)
