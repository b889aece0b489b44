"""
Tag Filter Module

Pure functions for selecting stacks by their tags.
This module contains no side effects - only tag matching logic.
"""

from typing import Iterable, List

from .models import FilterCriteria, Stack


def matches(stack: Stack, criteria: FilterCriteria) -> bool:
    """
    Check whether a stack satisfies the tag criteria.

    A stack matches when it carries every included tag and none of the
    excluded ones. Empty sets impose no constraint.

    Args:
        stack: Stack to check
        criteria: Selection criteria

    Returns:
        True if the stack is selected
    """
    if not criteria.include_tags.issubset(stack.tags):
        return False
    return criteria.exclude_tags.isdisjoint(stack.tags)


def filter_by_tags(stacks: Iterable[Stack], criteria: FilterCriteria) -> List[Stack]:
    """Keep the stacks matching the tag criteria, preserving order."""
    return [stack for stack in stacks if matches(stack, criteria)]
