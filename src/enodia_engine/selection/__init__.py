from enodia_engine.selection.state import (
    IDLE,
    SelectionChange,
    SelectionState,
    SelectionStateMachine,
    SelectionStyle,
)

__all__ = [
    "IDLE",
    "SelectionChange",
    "SelectionState",
    "SelectionStateMachine",
    "SelectionStyle",
]
