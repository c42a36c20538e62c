"""Selection FSM for line features.

States:
  Idle               -- nothing selected
  Selected(id, key)  -- exactly one feature selected, system-wide

Triggers:
  click(f)     Idle -> Selected(f); Selected(f) -> Idle; Selected(g) -> Selected(f)
  background   any -> Idle
  reset        any -> Idle (site search, area change, ingestion refresh)

Layer visibility is not a trigger.  A selected feature whose layer gets
disabled stays selected.

Every transition returns a ``SelectionChange`` naming the feature ids whose
style flipped, so the renderer restyles only those handles.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from enodia_engine.layers.layer import InfrastructureCategory, LineFeature


@dataclass(frozen=True)
class SelectionState:
    selected_feature_id: str | None = None
    selected_layer_key: InfrastructureCategory | None = None

    @property
    def is_idle(self) -> bool:
        return self.selected_feature_id is None

    def to_dict(self) -> dict:
        return {
            "state": "idle" if self.is_idle else "selected",
            "selected_feature_id": self.selected_feature_id,
            "selected_layer_key": (
                self.selected_layer_key.value if self.selected_layer_key else None
            ),
        }


IDLE = SelectionState()


@dataclass(frozen=True)
class SelectionStyle:
    emphasized: bool


@dataclass(frozen=True)
class SelectionChange:
    """Result of one trigger."""

    previous: SelectionState
    current: SelectionState
    trigger: str

    @property
    def changed(self) -> bool:
        return self.previous != self.current

    @property
    def affected_ids(self) -> frozenset[str]:
        """Feature ids whose ``emphasized`` flag differs before and after."""
        if not self.changed:
            return frozenset()
        ids = {self.previous.selected_feature_id, self.current.selected_feature_id}
        ids.discard(None)
        return frozenset(ids)


class SelectionStateMachine:
    """Single-selection state driven by pointer events."""

    def __init__(self) -> None:
        self._state = IDLE

    @property
    def state(self) -> SelectionState:
        return self._state

    def click(self, feature: LineFeature) -> SelectionChange:
        """Select ``feature``, or deselect it if it is already selected."""
        if self._state.selected_feature_id == feature.feature_id:
            return self._transition(IDLE, "click")
        return self._transition(
            SelectionState(feature.feature_id, feature.category), "click",
        )

    def click_background(self) -> SelectionChange:
        return self._transition(IDLE, "background")

    def reset(self) -> SelectionChange:
        return self._transition(IDLE, "reset")

    def is_selected(self, feature_id: str) -> bool:
        return feature_id is not None and self._state.selected_feature_id == feature_id

    def style_for(self, feature_id: str) -> SelectionStyle:
        """Pure style lookup for one feature under the current state."""
        return SelectionStyle(emphasized=self.is_selected(feature_id))

    def _transition(self, new: SelectionState, trigger: str) -> SelectionChange:
        change = SelectionChange(previous=self._state, current=new, trigger=trigger)
        self._state = new
        if change.changed:
            logger.debug(
                f"Selection {trigger}: {change.previous.selected_feature_id} "
                f"-> {change.current.selected_feature_id}"
            )
        return change
