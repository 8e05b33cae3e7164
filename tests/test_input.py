"""Tests for shellsense.stream.input."""

from __future__ import annotations

from shellsense.core.constants import CLEAR_LINE, PROMPT
from shellsense.stream import (
    ActionKind,
    CommandHistory,
    InputAction,
    InputState,
    InputStateMachine,
    match_interactive,
)

UP = "\x1b[A"
DOWN = "\x1b[B"


def _machine() -> InputStateMachine:
    return InputStateMachine(
        ["node", "python3", "php -a"],
        {"python3": ["-i", "-u"]},
    )


def _type(machine: InputStateMachine, text: str) -> list[InputAction]:
    actions: list[InputAction] = []
    for ch in text:
        actions.extend(machine.handle(ch))
    return actions


def _kinds(actions: list[InputAction]) -> list[ActionKind]:
    return [a.kind for a in actions]


class TestCommandHistory:
    """Tests for history browsing."""

    def test_older_walks_back_then_stops(self) -> None:
        history = CommandHistory(entries=["a", "b", "c"])
        assert history.older() == "c"
        assert history.older() == "b"
        assert history.older() == "a"
        assert history.older() is None

    def test_newer_returns_empty_past_newest(self) -> None:
        history = CommandHistory(entries=["a", "b"])
        history.older()
        history.older()
        assert history.newer() == "b"
        assert history.newer() == ""
        assert history.cursor == -1

    def test_newer_when_not_browsing(self) -> None:
        assert CommandHistory(entries=["a"]).newer() is None

    def test_append_resets_cursor(self) -> None:
        history = CommandHistory(entries=["a"])
        history.older()
        history.append("b")
        assert history.cursor == -1


class TestMatchInteractive:
    """Tests for interactive program detection."""

    def test_exact_and_prefix_match(self) -> None:
        programs = ["node", "php -a"]
        assert match_interactive("node", programs) == "node"
        assert match_interactive("node --inspect", programs) == "node"
        assert match_interactive("php -a", programs) == "php -a"

    def test_no_partial_word_match(self) -> None:
        assert match_interactive("nodemon app.js", ["node"]) is None
        assert match_interactive("php script.php", ["php -a"]) is None


class TestEditing:
    """Tests for the line editor."""

    def test_printable_keys_echo_and_buffer(self) -> None:
        machine = _machine()
        actions = _type(machine, "ls")
        assert [a.data for a in actions] == ["l", "s"]
        assert machine.buffer == "ls"

    def test_backspace_erases(self) -> None:
        machine = _machine()
        _type(machine, "lsx")
        actions = machine.handle("\x7f")
        assert actions == [InputAction(ActionKind.ECHO, "\b \b")]
        assert machine.buffer == "ls"

    def test_backspace_on_empty_buffer_is_ignored(self) -> None:
        assert _machine().handle("\x7f") == []

    def test_enter_submits_and_awaits(self) -> None:
        machine = _machine()
        _type(machine, "ls -la")
        actions = machine.handle("\r")
        assert actions == [
            InputAction(ActionKind.ECHO, "\r\n"),
            InputAction(ActionKind.SUBMIT, "ls -la"),
        ]
        assert machine.state is InputState.AWAITING_COMPLETION
        assert machine.buffer == ""
        assert machine.history.entries == ["ls -la"]

    def test_empty_submit_not_recorded(self) -> None:
        machine = _machine()
        machine.handle("\r")
        assert machine.history.entries == []

    def test_left_right_and_ctrl_d_ignored_while_editing(self) -> None:
        machine = _machine()
        assert machine.handle("\x1b[D") == []
        assert machine.handle("\x1b[C") == []
        assert machine.handle("\x04") == []

    def test_history_navigation_replaces_buffer(self) -> None:
        machine = _machine()
        for command in ("first", "second"):
            _type(machine, command)
            machine.handle("\r")
            machine.output_settled()
        _type(machine, "xy")
        actions = machine.handle(UP)
        assert actions == [InputAction(ActionKind.ECHO, "\b \b\b \bsecond")]
        assert machine.buffer == "second"
        machine.handle(UP)
        assert machine.buffer == "first"
        machine.handle(DOWN)
        assert machine.buffer == "second"
        machine.handle(DOWN)
        assert machine.buffer == ""

    def test_history_builtin_lists_commands(self) -> None:
        machine = _machine()
        _type(machine, "pwd")
        machine.handle("\r")
        machine.output_settled()
        _type(machine, "history")
        actions = machine.handle("\r")
        assert InputAction(ActionKind.ECHO, "  1  pwd\r\n  2  history\r\n") in actions
        assert ActionKind.SUBMIT not in _kinds(actions)
        assert machine.state is InputState.EDITING


class TestAwaitingCompletion:
    """Tests for the state after a submit."""

    def test_keys_ignored_while_awaiting(self) -> None:
        machine = _machine()
        _type(machine, "sleep 1")
        machine.handle("\r")
        assert machine.handle("x") == []
        assert machine.buffer == ""

    def test_output_settled_returns_to_editing(self) -> None:
        machine = _machine()
        machine.handle("\r")
        actions = machine.output_settled()
        assert actions == [InputAction(ActionKind.PROMPT, CLEAR_LINE + PROMPT)]
        assert machine.state is InputState.EDITING

    def test_fallback_returns_to_editing(self) -> None:
        machine = _machine()
        machine.handle("\r")
        assert machine.fallback_elapsed()
        assert machine.state is InputState.EDITING

    def test_settled_is_noop_while_editing(self) -> None:
        assert _machine().output_settled() == []

    def test_ctrl_c_interrupts(self) -> None:
        machine = _machine()
        _type(machine, "sleep 100")
        machine.handle("\r")
        actions = machine.handle("\x03")
        assert _kinds(actions) == [ActionKind.ECHO, ActionKind.WRITE, ActionKind.PROMPT]
        assert actions[1].data == "\x03"
        assert machine.state is InputState.EDITING


class TestPaste:
    """Tests for multi-line pastes."""

    def test_paste_submits_each_line(self) -> None:
        machine = _machine()
        actions = machine.handle("echo one\recho two\r")
        submits = [a.data for a in actions if a.kind is ActionKind.SUBMIT]
        assert submits == ["echo one", "echo two"]

    def test_paste_without_newline_is_buffered(self) -> None:
        machine = _machine()
        machine.handle("git status")
        assert machine.buffer == "git status"

    def test_paste_crlf_counts_once(self) -> None:
        machine = _machine()
        actions = machine.handle("a\r\nb\r\n")
        submits = [a.data for a in actions if a.kind is ActionKind.SUBMIT]
        assert submits == ["a", "b"]


class TestPassthrough:
    """Tests for interactive program mode."""

    def test_interactive_program_enters_passthrough(self) -> None:
        machine = _machine()
        _type(machine, "node")
        actions = machine.handle("\r")
        assert _kinds(actions) == [ActionKind.ECHO, ActionKind.MODE, ActionKind.SUBMIT]
        assert actions[1].data == "passthrough"
        assert machine.state is InputState.PASSTHROUGH
        assert machine.passthrough is True

    def test_flags_injected_for_python(self) -> None:
        machine = _machine()
        _type(machine, "python3 script.py")
        actions = machine.handle("\r")
        assert actions[-1] == InputAction(ActionKind.SUBMIT, "python3 -i -u script.py")

    def test_keys_forwarded_raw(self) -> None:
        machine = _machine()
        machine.enter_passthrough()
        assert machine.handle("x") == [
            InputAction(ActionKind.ECHO, "x"),
            InputAction(ActionKind.WRITE, "x"),
        ]
        assert machine.handle("\r") == [
            InputAction(ActionKind.ECHO, "\r\n"),
            InputAction(ActionKind.WRITE, "\n"),
        ]

    def test_ctrl_d_leaves_passthrough(self) -> None:
        machine = _machine()
        machine.enter_passthrough()
        actions = machine.handle("\x04")
        assert actions[0] == InputAction(ActionKind.WRITE, "\x04")
        assert actions[1] == InputAction(ActionKind.MODE, "line")
        assert actions[2].kind is ActionKind.PROMPT
        assert machine.state is InputState.EDITING

    def test_enter_passthrough_is_idempotent(self) -> None:
        machine = _machine()
        assert machine.enter_passthrough() == [InputAction(ActionKind.MODE, "passthrough")]
        assert machine.enter_passthrough() == []
