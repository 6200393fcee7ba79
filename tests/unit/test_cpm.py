import pytest

from src.domain.cpm import (
    Activity,
    CycleError,
    Link,
    compute_cpm,
    creates_cycle,
    expand_links,
    rollup_hierarchy,
    topological_order,
)


def test_finish_to_start_network():
    activities = [Activity("A", 3), Activity("B", 2), Activity("C", 4), Activity("D", 1)]
    links = [Link("A", "B"), Link("A", "C"), Link("B", "D"), Link("C", "D")]

    result = compute_cpm(activities, links, near_critical_days=1.0)

    assert result.project_duration == 8
    t = result.timings
    assert (t["C"].early_start, t["C"].early_finish) == (3, 7)
    assert (t["B"].late_start, t["B"].late_finish) == (5, 7)
    assert t["B"].total_float == 2
    assert t["B"].free_float == 2
    assert t["B"].is_critical is False
    assert t["B"].is_near_critical is False
    assert result.critical_path == ["A", "C", "D"]


def test_start_to_start_with_lag():
    result = compute_cpm([Activity("A", 4), Activity("B", 3)], [Link("A", "B", "SS", 2)])

    assert result.timings["B"].early_start == 2
    assert result.project_duration == 5
    assert result.critical_path == ["A", "B"]


def test_finish_to_finish_shifts_successor_start():
    result = compute_cpm([Activity("A", 5), Activity("B", 2)], [Link("A", "B", "FF")])

    b = result.timings["B"]
    assert (b.early_start, b.early_finish) == (3, 5)
    assert result.timings["A"].total_float == 0


def test_finish_to_finish_never_starts_before_zero():
    result = compute_cpm([Activity("A", 1), Activity("B", 5)], [Link("A", "B", "FF")])

    assert result.timings["B"].early_start == 0
    assert result.timings["A"].total_float == 4
    assert result.timings["A"].free_float == 4


def test_start_to_finish():
    result = compute_cpm([Activity("A", 2), Activity("B", 3)], [Link("A", "B", "SF", 4)])

    b = result.timings["B"]
    assert (b.early_start, b.early_finish) == (1, 4)
    assert result.project_duration == 4
    assert result.timings["A"].late_finish == 2


def test_earliest_start_constraint():
    result = compute_cpm([Activity("A", 2, earliest_start=5)], [])

    assert result.timings["A"].early_start == 5
    assert result.project_duration == 7


def test_near_critical_classification():
    activities = [Activity("A", 3), Activity("B", 3.5), Activity("C", 1)]
    links = [Link("A", "C"), Link("B", "C")]

    result = compute_cpm(activities, links, near_critical_days=1.0)

    a = result.timings["A"]
    assert a.total_float == pytest.approx(0.5)
    assert a.is_near_critical is True
    assert a.is_critical is False
    assert result.timings["B"].is_critical is True


def test_milestones_have_zero_duration():
    activities = [Activity("Start", 0), Activity("Work", 4), Activity("Handover", 0)]
    links = [Link("Start", "Work"), Link("Work", "Handover")]

    result = compute_cpm(activities, links)

    assert result.timings["Handover"].early_start == 4
    assert result.critical_path == ["Start", "Work", "Handover"]


def test_empty_network():
    result = compute_cpm([], [])

    assert result.project_duration == 0
    assert result.critical_path == []


def test_links_to_unknown_activities_are_ignored():
    result = compute_cpm([Activity("A", 2)], [Link("ghost", "A")])

    assert result.timings["A"].early_start == 0
    assert result.links == []


def test_duplicate_ids_rejected():
    with pytest.raises(ValueError, match="Duplicate"):
        compute_cpm([Activity("A", 1), Activity("A", 2)], [])


def test_cycle_raises_with_remaining_activities():
    with pytest.raises(CycleError) as exc:
        topological_order(["A", "B", "C"], [Link("A", "B"), Link("B", "A")])

    assert exc.value.remaining == ["A", "B"]
    assert isinstance(exc.value, ValueError)


def test_topological_order_keeps_input_order_for_ties():
    assert topological_order(["X", "Y", "Z"], [Link("Z", "Y")]) == ["X", "Z", "Y"]


def test_creates_cycle():
    links = [Link("A", "B"), Link("B", "C")]

    assert creates_cycle(links, "C", "A") is True
    assert creates_cycle(links, "A", "C") is False
    assert creates_cycle(links, "A", "A") is True


def test_rollup_links_expand_to_leaves():
    parent_of = {"P": None, "A": "P", "B": "P", "X": None, "S": None}
    leaves, children = rollup_hierarchy(parent_of, ["A", "B", "X", "P"])

    assert leaves == {"A", "B", "X"}
    expanded = expand_links([Link("X", "P", "SS", 2.0), Link("P", "A")], leaves, children)
    assert set(expanded) == {Link("X", "A", "SS", 2.0), Link("X", "B", "SS", 2.0)}


def test_expanded_rollup_cycle_is_detected():
    parent_of = {"P": None, "A": "P", "B": "P", "X": None}
    leaves, children = rollup_hierarchy(parent_of, ["A", "B", "X"])
    links = expand_links([Link("X", "P"), Link("A", "X")], leaves, children)

    assert not creates_cycle([Link("X", "P")], "A", "X")
    with pytest.raises(CycleError):
        topological_order(sorted(leaves), links)
