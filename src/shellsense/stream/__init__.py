"""Stream processing: output line reassembly and keystroke handling."""

from shellsense.stream.input import (
    ActionKind,
    CommandHistory,
    InputAction,
    InputState,
    InputStateMachine,
    match_interactive,
)
from shellsense.stream.reassembler import LineReassembler, ReassemblyResult
from shellsense.stream.timers import CancellableTimer

__all__ = [
    "ActionKind",
    "CancellableTimer",
    "CommandHistory",
    "InputAction",
    "InputState",
    "InputStateMachine",
    "LineReassembler",
    "ReassemblyResult",
    "match_interactive",
]
