"""Tests for the single-selection FSM.

Covers:
 - Idle -> Selected on click
 - Selected(f) -> Idle on re-click of f
 - Selected(g) -> Selected(f) on click of another feature
 - background click and reset from any state
 - affected_ids reported per transition
 - style lookup
"""

from __future__ import annotations

import pytest

from enodia_engine.layers import InfrastructureCategory, LineFeature
from enodia_engine.selection import IDLE, SelectionState, SelectionStateMachine

pytestmark = pytest.mark.unit


def _feature(fid, category=InfrastructureCategory.ROAD):
    return LineFeature(feature_id=fid, category=category, coordinates=((0.0, 0.0), (0.0, 1.0)))


A = _feature("A")
B = _feature("B", InfrastructureCategory.RAIL)


@pytest.fixture
def fsm():
    return SelectionStateMachine()


# ===========================================================================
# Transitions
# ===========================================================================

class TestTransitions:

    def test_starts_idle(self, fsm):
        assert fsm.state is IDLE
        assert fsm.state.is_idle

    def test_click_selects(self, fsm):
        change = fsm.click(A)
        assert fsm.state == SelectionState("A", InfrastructureCategory.ROAD)
        assert change.previous == IDLE
        assert change.trigger == "click"

    def test_click_selected_feature_deselects(self, fsm):
        fsm.click(A)
        fsm.click(A)
        assert fsm.state.is_idle

    def test_click_other_feature_replaces(self, fsm):
        fsm.click(A)
        fsm.click(B)
        assert fsm.state.selected_feature_id == "B"
        assert fsm.state.selected_layer_key is InfrastructureCategory.RAIL

    def test_background_click_clears(self, fsm):
        fsm.click(A)
        change = fsm.click_background()
        assert fsm.state.is_idle
        assert change.trigger == "background"

    def test_background_click_when_idle_is_noop(self, fsm):
        change = fsm.click_background()
        assert not change.changed
        assert fsm.state.is_idle

    def test_reset(self, fsm):
        fsm.click(B)
        change = fsm.reset()
        assert fsm.state.is_idle
        assert change.trigger == "reset"

    def test_at_most_one_selected(self, fsm):
        for feature in (A, B, A, B, B, A):
            fsm.click(feature)
            assert sum(fsm.is_selected(f) for f in ("A", "B")) <= 1


# ===========================================================================
# Affected ids
# ===========================================================================

class TestAffectedIds:

    def test_select_from_idle(self, fsm):
        assert fsm.click(A).affected_ids == frozenset({"A"})

    def test_switch_reports_both(self, fsm):
        fsm.click(A)
        assert fsm.click(B).affected_ids == frozenset({"A", "B"})

    def test_deselect_reports_previous(self, fsm):
        fsm.click(A)
        assert fsm.click(A).affected_ids == frozenset({"A"})

    def test_noop_reports_nothing(self, fsm):
        assert fsm.reset().affected_ids == frozenset()


# ===========================================================================
# Style and serialization
# ===========================================================================

class TestStyle:

    def test_only_selected_is_emphasized(self, fsm):
        fsm.click(A)
        assert fsm.style_for("A").emphasized is True
        assert fsm.style_for("B").emphasized is False

    def test_idle_emphasizes_nothing(self, fsm):
        assert fsm.style_for("A").emphasized is False

    def test_to_dict(self, fsm):
        assert fsm.state.to_dict() == {
            "state": "idle",
            "selected_feature_id": None,
            "selected_layer_key": None,
        }
        fsm.click(B)
        assert fsm.state.to_dict() == {
            "state": "selected",
            "selected_feature_id": "B",
            "selected_layer_key": "rail",
        }
