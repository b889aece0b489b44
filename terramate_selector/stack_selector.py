"""Stack selector - turns the local inventory and filter criteria into the final stack list."""

import logging
from typing import Iterable, Optional

from .exceptions import ConfigurationError
from .health_filter import StackStatusSource, ensure_trackable_repository, filter_unhealthy
from .models import FilterCriteria, SelectionResult, Stack, StatusFilter
from .tag_filter import filter_by_tags

logger = logging.getLogger(__name__)


def select_stacks(
    stacks: Iterable[Stack],
    criteria: FilterCriteria,
    repository: str = "",
    status_source: Optional[StackStatusSource] = None,
) -> SelectionResult:
    """
    Select the stacks a command acts on.

    Preconditions of the status filter are validated before anything is
    fetched, so a failing precondition never produces partial output.

    Args:
        stacks: Local stack inventory
        criteria: Tag and status criteria
        repository: Normalized repository of the local checkout
        status_source: Source of cloud stack records, required with a status filter

    Returns:
        SelectionResult sorted by stack path
    """
    if criteria.status is not None:
        ensure_trackable_repository(repository)
        if status_source is None:
            raise ConfigurationError("status filter requires a cloud status source")

    selected = filter_by_tags(stacks, criteria)
    logger.debug(f"{len(selected)} stack(s) left after tag filtering")

    if criteria.status is StatusFilter.UNHEALTHY:
        # Nothing local can match, skip the request.
        records = status_source.list_stacks() if selected else []
        logger.debug(f"fetched {len(records)} cloud stack record(s)")
        selected = filter_unhealthy(selected, records, repository)

    return SelectionResult(stacks=sorted(selected, key=lambda stack: stack.path))
