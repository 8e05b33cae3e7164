"""Keystroke handling for a monitored shell.

The InputStateMachine owns the line-edit buffer and command history. It
never touches the shell itself: every keystroke yields a list of
InputAction records that the session carries out (echo to the display,
write to the shell's stdin, submit a command, switch modes, redraw the
prompt).
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from shellsense.core.constants import CLEAR_LINE, PROMPT
from shellsense.core.logging import get_logger

_logger = get_logger("input")

KEY_ENTER = "\r"
KEY_NEWLINE = "\n"
KEY_BACKSPACE = "\x7f"
KEY_CTRL_H = "\b"
KEY_CTRL_C = "\x03"
KEY_CTRL_D = "\x04"
KEY_UP = "\x1b[A"
KEY_DOWN = "\x1b[B"
KEY_RIGHT = "\x1b[C"
KEY_LEFT = "\x1b[D"

ERASE_CHAR = "\b \b"

_LINE_SPLIT = re.compile(r"(\r\n|\r|\n)")


class InputState(str, Enum):
    """Line-editing state of a session."""

    EDITING = "editing"
    AWAITING_COMPLETION = "awaiting_completion"
    PASSTHROUGH = "passthrough"


class ActionKind(str, Enum):
    """What the session should do with an InputAction."""

    ECHO = "echo"  # draw text locally
    WRITE = "write"  # send raw data to the shell
    SUBMIT = "submit"  # send a command line to the shell
    MODE = "mode"  # "line" or "passthrough"
    PROMPT = "prompt"  # redraw the prompt


@dataclass(frozen=True)
class InputAction:
    kind: ActionKind
    data: str = ""


@dataclass
class CommandHistory:
    """Submitted commands plus a browse cursor.

    The cursor counts back from the newest entry; -1 means not browsing.
    """

    entries: list[str]
    cursor: int = -1

    def append(self, command: str) -> None:
        self.entries.append(command)
        self.cursor = -1

    def older(self) -> str | None:
        if self.cursor < len(self.entries) - 1:
            self.cursor += 1
            return self.entries[-1 - self.cursor]
        return None

    def newer(self) -> str | None:
        """Step toward the newest entry; "" once past it, None if not browsing."""
        if self.cursor > 0:
            self.cursor -= 1
            return self.entries[-1 - self.cursor]
        if self.cursor == 0:
            self.cursor = -1
            return ""
        return None


def match_interactive(command: str, programs: Iterable[str]) -> str | None:
    """Return the interactive program ``command`` starts, if any.

    A program matches when the command equals it or starts with it followed
    by a space.
    """
    for program in programs:
        if command == program or command.startswith(program + " "):
            return program
    return None


class InputStateMachine:
    """Line editor and mode tracker for one session."""

    def __init__(
        self,
        interactive_programs: Iterable[str] = (),
        interactive_flags: dict[str, list[str]] | None = None,
    ) -> None:
        self.state = InputState.EDITING
        self.buffer = ""
        self.history = CommandHistory(entries=[])
        self._programs = list(interactive_programs)
        self._flags = dict(interactive_flags or {})

    @property
    def passthrough(self) -> bool:
        return self.state is InputState.PASSTHROUGH

    def handle(self, unit: str) -> list[InputAction]:
        """Process one keystroke, control sequence or paste chunk."""
        if len(unit) > 1 and not unit.startswith("\x1b") and _LINE_SPLIT.search(unit):
            return self._handle_paste(unit)
        return self._handle_unit(unit, pasting=False)

    def prompt(self) -> InputAction:
        return InputAction(ActionKind.PROMPT, CLEAR_LINE + PROMPT + self.buffer)

    def output_settled(self) -> list[InputAction]:
        """Output went quiet after a submit: resume line editing."""
        if self.state is InputState.AWAITING_COMPLETION:
            self.state = InputState.EDITING
            return [self.prompt()]
        return []

    def fallback_elapsed(self) -> list[InputAction]:
        """No output arrived after a submit: resume line editing anyway."""
        return self.output_settled()

    def enter_passthrough(self) -> list[InputAction]:
        if self.state is InputState.PASSTHROUGH:
            return []
        self.state = InputState.PASSTHROUGH
        return [InputAction(ActionKind.MODE, "passthrough")]

    def reset(self) -> None:
        self.state = InputState.EDITING
        self.buffer = ""
        self.history.cursor = -1

    def _handle_paste(self, chunk: str) -> list[InputAction]:
        actions: list[InputAction] = []
        for part in _LINE_SPLIT.split(chunk):
            if not part:
                continue
            unit = KEY_ENTER if _LINE_SPLIT.fullmatch(part) else part
            actions.extend(self._handle_unit(unit, pasting=True))
        return actions

    def _handle_unit(self, unit: str, *, pasting: bool) -> list[InputAction]:
        if self.state is InputState.PASSTHROUGH:
            return self._handle_passthrough(unit)
        if unit == KEY_CTRL_C:
            return self._interrupt()
        if self.state is InputState.AWAITING_COMPLETION and not pasting:
            return []
        if unit in (KEY_ENTER, KEY_NEWLINE):
            return self._submit()
        if unit in (KEY_BACKSPACE, KEY_CTRL_H):
            if not self.buffer:
                return []
            self.buffer = self.buffer[:-1]
            return [InputAction(ActionKind.ECHO, ERASE_CHAR)]
        if unit == KEY_UP:
            return self._replace_buffer(self.history.older())
        if unit == KEY_DOWN:
            return self._replace_buffer(self.history.newer())
        if unit.startswith("\x1b") or unit == KEY_CTRL_D:
            # Left/Right and other escape sequences are not supported
            return []
        self.buffer += unit
        return [InputAction(ActionKind.ECHO, unit)]

    def _handle_passthrough(self, unit: str) -> list[InputAction]:
        if unit == KEY_CTRL_D:
            self.state = InputState.EDITING
            self.buffer = ""
            return [
                InputAction(ActionKind.WRITE, KEY_CTRL_D),
                InputAction(ActionKind.MODE, "line"),
                self.prompt(),
            ]
        if unit in (KEY_ENTER, KEY_NEWLINE):
            return [InputAction(ActionKind.ECHO, "\r\n"), InputAction(ActionKind.WRITE, "\n")]
        if unit in (KEY_BACKSPACE, KEY_CTRL_H):
            return [InputAction(ActionKind.ECHO, ERASE_CHAR), InputAction(ActionKind.WRITE, KEY_BACKSPACE)]
        if unit == KEY_CTRL_C:
            return [InputAction(ActionKind.ECHO, "^C\r\n"), InputAction(ActionKind.WRITE, KEY_CTRL_C)]
        return [InputAction(ActionKind.ECHO, unit), InputAction(ActionKind.WRITE, unit)]

    def _interrupt(self) -> list[InputAction]:
        self.buffer = ""
        self.history.cursor = -1
        self.state = InputState.EDITING
        return [
            InputAction(ActionKind.ECHO, "^C\r\n"),
            InputAction(ActionKind.WRITE, KEY_CTRL_C),
            self.prompt(),
        ]

    def _replace_buffer(self, entry: str | None) -> list[InputAction]:
        if entry is None:
            return []
        erase = ERASE_CHAR * len(self.buffer)
        self.buffer = entry
        return [InputAction(ActionKind.ECHO, erase + entry)]

    def _submit(self) -> list[InputAction]:
        command = self.buffer
        self.buffer = ""
        actions = [InputAction(ActionKind.ECHO, "\r\n")]
        trimmed = command.strip()
        if trimmed:
            self.history.append(command)
        else:
            self.history.cursor = -1

        if trimmed == "history":
            actions.append(InputAction(ActionKind.ECHO, self._format_history()))
            actions.append(self.prompt())
            self.state = InputState.EDITING
            return actions

        program = match_interactive(trimmed, self._programs)
        if program is not None:
            flags = self._flags.get(program)
            if flags:
                command = " ".join([program, *flags]) + trimmed[len(program):]
            _logger.debug("input.interactive_program", program=program)
            self.state = InputState.PASSTHROUGH
            actions.append(InputAction(ActionKind.MODE, "passthrough"))
            actions.append(InputAction(ActionKind.SUBMIT, command))
            return actions

        self.state = InputState.AWAITING_COMPLETION
        actions.append(InputAction(ActionKind.SUBMIT, command))
        return actions

    def _format_history(self) -> str:
        if not self.history.entries:
            return "No commands in history.\r\n"
        return "".join(
            f"  {index}  {cmd}\r\n" for index, cmd in enumerate(self.history.entries, start=1)
        )


__all__ = [
    "ActionKind",
    "CommandHistory",
    "InputAction",
    "InputState",
    "InputStateMachine",
    "match_interactive",
]
