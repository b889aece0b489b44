"""
Cloud Health Filter Module

This module merges the local stack inventory with the stack records reported
by Terramate Cloud and keeps the stacks whose last known status is not OK.

Classes:
    StackStatusSource: Protocol for anything able to list remote stack records

Functions:
    parse_status_filter: Validate an --experimental-status value
    ensure_trackable_repository: Reject repositories without a git remote
    index_by_meta_id: Map stack ids to the records of the current repository
    is_unhealthy: Classify a single remote record
    filter_unhealthy: Keep the local stacks classified as unhealthy
"""

import logging
from typing import Dict, Iterable, List, Optional, Protocol

from .config import LOCAL_REPOSITORY
from .exceptions import ConfigurationError, UnsupportedRemoteError
from .models import RemoteStackStatus, Stack, StackStatus, StatusFilter

logger = logging.getLogger(__name__)


class StackStatusSource(Protocol):
    """Protocol for the source of remote stack records."""

    def list_stacks(self) -> List[RemoteStackStatus]:
        """Fetch the stack records of the current organization."""
        ...


def parse_status_filter(value: Optional[str]) -> Optional[StatusFilter]:
    """Validate the status filter flag.

    Args:
        value: Raw flag value, None when the flag was not given

    Returns:
        StatusFilter, or None when no filter was requested

    Raises:
        ConfigurationError: If any value other than 'unhealthy' is given
    """
    if value is None:
        return None
    try:
        return StatusFilter(value)
    except ValueError:
        raise ConfigurationError(f"only unhealthy filter allowed, got '{value}'") from None


def ensure_trackable_repository(normalized_repo: str) -> None:
    """Reject repositories whose remote cannot be matched against cloud records.

    Raises:
        UnsupportedRemoteError: If the repository has no remote or a filesystem one
    """
    if not normalized_repo or normalized_repo == LOCAL_REPOSITORY:
        raise UnsupportedRemoteError(
            "unhealthy status filter does not work with filesystem based remotes"
        )


def index_by_meta_id(records: Iterable[RemoteStackStatus], repository: str) -> Dict[str, RemoteStackStatus]:
    """Index the records of the given repository by stack id.

    Records of other repositories are dropped before matching.
    """
    index = {}
    for record in records:
        if record.repository != repository:
            logger.debug(
                f"ignoring cloud stack {record.id} ({record.meta_id}) of repository {record.repository}"
            )
            continue
        index[record.meta_id] = record
    return index


def is_unhealthy(record: RemoteStackStatus) -> bool:
    """A stack is unhealthy when its status is anything but OK."""
    return record.status is not StackStatus.OK


def filter_unhealthy(
    stacks: Iterable[Stack],
    records: Iterable[RemoteStackStatus],
    repository: str,
) -> List[Stack]:
    """
    Keep the local stacks reported unhealthy for the current repository.

    Stacks without an id never match. Stacks without a cloud record are
    considered healthy.

    Args:
        stacks: Candidate local stacks
        records: Stack records fetched from Terramate Cloud
        repository: Normalized repository of the local checkout

    Returns:
        Unhealthy stacks in input order
    """
    index = index_by_meta_id(records, repository)

    result = []
    for stack in stacks:
        if not stack.has_id:
            continue
        record = index.get(stack.meta_id)
        if record is None:
            continue
        if is_unhealthy(record):
            result.append(stack)
    return result
