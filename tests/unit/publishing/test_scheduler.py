"""Tests for dependency-aware batching."""

from __future__ import annotations

import itertools

import pytest

from pyreleaser.errors import SchedulingError
from pyreleaser.planning import ReleaseEntry
from pyreleaser.publishing import ReleaseSchedule, schedule_batches, validate_schedule


def entry(name: str, publish: bool = True) -> ReleaseEntry:
    to = "2.0.0" if publish else "1.0.0"
    return ReleaseEntry(name=name, from_version="1.0.0", to_version=to, publish=publish)


def entries(*names: str) -> list[ReleaseEntry]:
    return [entry(n) for n in names]


def test_siblings_share_a_batch(make_graph) -> None:
    graph = make_graph({"A": [], "B": ["A"], "C": ["A"]})
    schedule = schedule_batches(entries("A", "B", "C"), graph, 2)
    assert schedule.names == [["A"], ["B", "C"]]


def test_linear_chain_is_serial(make_graph) -> None:
    graph = make_graph({"A": [], "B": ["A"], "C": ["B"]})
    schedule = schedule_batches(entries("A", "B", "C"), graph, 1)
    assert schedule.names == [["A"], ["B"], ["C"]]


def test_batch_size_limits(make_graph) -> None:
    graph = make_graph({n: [] for n in "abcde"})
    schedule = schedule_batches(entries(*"abcde"), graph, 2)
    assert schedule.names == [["a", "b"], ["c", "d"], ["e"]]


@pytest.mark.parametrize("batch_size", [None, 0])
def test_unbounded(make_graph, batch_size) -> None:
    graph = make_graph({"a": [], "b": [], "c": ["a"], "d": ["a", "b"]})
    schedule = schedule_batches(entries("a", "b", "c", "d"), graph, batch_size)
    assert schedule.names == [["a", "b"], ["c", "d"]]


def test_unpublished_entries_ignored(make_graph) -> None:
    graph = make_graph({"a": [], "b": ["a"], "c": ["b"]})
    schedule = schedule_batches([entry("a", publish=False), entry("b"), entry("c")], graph, 5)
    assert schedule.names == [["b"], ["c"]]


def test_dependency_outside_release_is_satisfied(make_graph) -> None:
    graph = make_graph({"a": [], "b": ["a"], "c": ["a"]})
    schedule = schedule_batches(entries("b", "c"), graph, 5)
    assert schedule.names == [["b", "c"]]


def test_misordered_input(make_graph) -> None:
    graph = make_graph({"a": [], "b": ["a"]})
    with pytest.raises(SchedulingError, match="'b' is listed before"):
        schedule_batches(entries("b", "a"), graph, 5)


def test_empty(make_graph) -> None:
    schedule = schedule_batches([], make_graph({"a": []}), 3)
    assert len(schedule) == 0
    assert schedule.size == 0


def test_invariant_holds_for_all_batch_sizes(make_graph) -> None:
    spec = {
        "core": [],
        "log": [],
        "utils": ["core"],
        "io": ["core", "log"],
        "net": ["io", "utils"],
        "web": ["net"],
        "cli": ["net", "log"],
        "docs": [],
    }
    graph = make_graph(spec)
    order = graph.topological_order()

    for batch_size, skip in itertools.product([None, 1, 2, 3, 8], [(), ("io",), ("core", "net")]):
        plan_entries = [entry(n, publish=n not in skip) for n in order]
        schedule = schedule_batches(plan_entries, graph, batch_size)
        validate_schedule(schedule, graph)

        batch_of = {e.name: i for i, b in enumerate(schedule) for e in b}
        assert set(batch_of) == {n for n in order if n not in skip}
        for name, index in batch_of.items():
            for dep in spec[name]:
                if dep in batch_of:
                    assert batch_of[dep] < index
            if batch_size:
                assert len(schedule[index]) <= batch_size


def test_validate_schedule_rejects_shared_batch(make_graph) -> None:
    graph = make_graph({"a": [], "b": ["a"]})
    schedule = ReleaseSchedule([[entry("a"), entry("b")]])
    with pytest.raises(SchedulingError, match="depends on 'a'"):
        validate_schedule(schedule, graph)
