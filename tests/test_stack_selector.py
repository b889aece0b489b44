"""Tests for the selection pipeline."""

from unittest.mock import Mock

import pytest

from terramate_selector.exceptions import ConfigurationError, NetworkError, UnsupportedRemoteError
from terramate_selector.models import (
    FilterCriteria,
    RemoteStackStatus,
    SelectionResult,
    Stack,
    StackStatus,
    StatusFilter,
)
from terramate_selector.stack_selector import select_stacks

REPOSITORY = "github.com/terramate-io/terramate"
UNHEALTHY = FilterCriteria(status=StatusFilter.UNHEALTHY)


def status_source(*records):
    source = Mock()
    source.list_stacks.return_value = list(records)
    return source


def failed(meta_id, repository=REPOSITORY):
    return RemoteStackStatus(id=1, meta_id=meta_id, repository=repository, status=StackStatus.FAILED)


def test_no_filter_lists_all_stacks_sorted():
    stacks = [Stack("s2"), Stack("s1"), Stack("a/b")]

    result = select_stacks(stacks, FilterCriteria())

    assert result.paths == ["a/b", "s1", "s2"]
    assert result.render() == "a/b\ns1\ns2\n"


def test_stacks_without_id_listed_without_status_filter():
    result = select_stacks([Stack("s1", meta_id="s1"), Stack("no-id")], FilterCriteria())

    assert result.paths == ["no-id", "s1"]


def test_unhealthy_stack_selected():
    stacks = [Stack("s1", meta_id="s1"), Stack("s2", meta_id="s2")]

    result = select_stacks(stacks, UNHEALTHY, REPOSITORY, status_source(failed("s1")))

    assert result.render() == "s1\n"


def test_unhealthy_record_of_other_repository_ignored():
    stacks = [Stack("s1", meta_id="s1"), Stack("s2", meta_id="s2")]
    source = status_source(failed("s1", repository="gitlab.com/unknown-io/other"))

    assert select_stacks(stacks, UNHEALTHY, REPOSITORY, source).render() == ""


def test_no_local_stacks_skips_fetch():
    source = status_source(failed("s1"), failed("s2"))

    result = select_stacks([], UNHEALTHY, REPOSITORY, source)

    assert result.render() == ""
    source.list_stacks.assert_not_called()


def test_tags_applied_before_health():
    stacks = [
        Stack("s1", meta_id="s1", tags=frozenset({"aws"})),
        Stack("s2", meta_id="s2", tags=frozenset({"gcp"})),
    ]
    criteria = FilterCriteria(include_tags=frozenset({"aws"}), status=StatusFilter.UNHEALTHY)

    result = select_stacks(stacks, criteria, REPOSITORY, status_source(failed("s1"), failed("s2")))

    assert result.paths == ["s1"]


def test_filesystem_remote_rejected_before_fetch():
    source = status_source(failed("s1"))

    with pytest.raises(UnsupportedRemoteError):
        select_stacks([Stack("s1", meta_id="s1")], UNHEALTHY, "local", source)

    source.list_stacks.assert_not_called()


def test_status_filter_requires_source():
    with pytest.raises(ConfigurationError):
        select_stacks([Stack("s1", meta_id="s1")], UNHEALTHY, REPOSITORY)


def test_network_error_propagates():
    source = Mock()
    source.list_stacks.side_effect = NetworkError("timeout")

    with pytest.raises(NetworkError):
        select_stacks([Stack("s1", meta_id="s1")], UNHEALTHY, REPOSITORY, source)


def test_output_is_stable():
    stacks = [Stack("b", meta_id="b"), Stack("a", meta_id="a"), Stack("c", meta_id="c")]
    source = status_source(failed("a"), failed("b"), failed("c"))

    renders = {select_stacks(list(reversed(stacks)), UNHEALTHY, REPOSITORY, source).render() for _ in range(3)}
    renders.add(select_stacks(stacks, UNHEALTHY, REPOSITORY, source).render())

    assert renders == {"a\nb\nc\n"}


def test_empty_result_renders_empty():
    assert SelectionResult().render() == ""
