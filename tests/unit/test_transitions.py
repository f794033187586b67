import pytest

from formflow import can_navigate_to_step, get_next_step, get_previous_step, resolve_transition
from formflow.machine.transitions import get_frontier_step


def test_resolve_static_and_terminal(linear_flow):
    assert resolve_transition(linear_flow, "step1", {"name": "x"}, {}) == "step2"
    assert resolve_transition(linear_flow, "step3", {"done": True}, {}) is None


def test_resolve_dynamic_uses_step_data(branching_flow):
    assert resolve_transition(branching_flow, "start", {"type": "a"}, {}) == "branch_a"
    assert resolve_transition(branching_flow, "start", {"type": "b"}, {}) == "branch_b"


def test_resolve_unknown_step_returns_none(linear_flow):
    assert resolve_transition(linear_flow, "missing", {}, {}) is None


def test_resolve_does_not_swallow_transition_errors(branching_flow):
    with pytest.raises(KeyError):
        resolve_transition(branching_flow, "start", {}, {})


def test_next_and_previous_step_boundaries():
    path = ["a", "b", "c"]
    assert get_next_step("a", path) == "b"
    assert get_next_step("c", path) is None
    assert get_next_step("z", path) is None
    assert get_previous_step("b", path) == "a"
    assert get_previous_step("a", path) is None
    assert get_previous_step("z", path) is None


def test_frontier_is_first_uncompleted_step():
    assert get_frontier_step({"a"}, ["a", "b", "c"]) == "b"
    assert get_frontier_step({"a", "b", "c"}, ["a", "b", "c"]) is None


def test_can_navigate_to_completed_and_first_step():
    path = ["step1", "step2", "step3"]
    assert can_navigate_to_step("step1", set(), path)
    assert can_navigate_to_step("step2", {"step1", "step2"}, path)


def test_cannot_skip_ahead_of_frontier():
    path = ["step1", "step2", "step3"]
    completed = {"step1"}
    assert can_navigate_to_step("step2", completed, path)
    assert not can_navigate_to_step("step3", completed, path)


def test_cannot_navigate_outside_path():
    assert not can_navigate_to_step("branch_a", {"start", "branch_a"}, ["start", "branch_b"])
