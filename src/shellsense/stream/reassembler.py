"""Line reassembly for raw shell output.

Turns an unbounded stream of byte chunks into complete lines. Carriage
returns that are not part of a CRLF pair clear the line being built, which
drops progress-bar redraws. The emitted lines depend only on the bytes
received, never on how they were split into chunks.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass, field

from shellsense.core.constants import CLEAR_LINE, PASSTHROUGH_BUFFER_MAX_CHARS


@dataclass
class ReassemblyResult:
    """Outcome of feeding one chunk.

    Attributes:
        lines: Complete lines terminated by this chunk, in order.
        display: Text to draw, in order. Complete lines end with CRLF;
            a trailing partial line is drawn after a clear-line sequence.
        partial: Characters of the unterminated line still being built.
        mid_line: True when the cursor sits after unterminated text.
    """

    lines: list[str] = field(default_factory=list)
    display: list[str] = field(default_factory=list)
    partial: str = ""
    mid_line: bool = False


class LineReassembler:
    """Reconstructs lines from shell output chunks.

    In passthrough mode chunks are forwarded as display text untouched and
    kept in a bounded buffer so the output of an interactive program can
    still be analysed afterwards.
    """

    def __init__(self, passthrough_limit: int = PASSTHROUGH_BUFFER_MAX_CHARS) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._pending_cr = False
        self._passthrough = False
        self._passthrough_limit = passthrough_limit
        self._passthrough_output = ""

    @property
    def passthrough(self) -> bool:
        return self._passthrough

    @property
    def partial(self) -> str:
        return self._buffer

    def set_passthrough(self, enabled: bool) -> None:
        """Switch modes. The line buffer is reset on every switch."""
        if enabled == self._passthrough:
            return
        self._passthrough = enabled
        self._buffer = ""
        self._pending_cr = False

    def take_passthrough_output(self) -> str:
        """Return and clear the text accumulated in passthrough mode."""
        text, self._passthrough_output = self._passthrough_output, ""
        return text

    def feed(self, chunk: bytes | str) -> ReassemblyResult:
        """Consume one chunk and report completed lines and display text."""
        text = self._decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        result = ReassemblyResult()
        if not text:
            result.partial = self._buffer
            result.mid_line = bool(self._buffer)
            return result

        if self._passthrough:
            self._accumulate(text)
            result.display.append(text)
            return result

        for ch in text:
            if self._pending_cr:
                self._pending_cr = False
                if ch == "\n":
                    self._emit(result)
                    continue
                # Bare CR: the line is being redrawn
                self._buffer = ""
            if ch == "\r":
                self._pending_cr = True
            elif ch == "\n":
                self._emit(result)
            else:
                self._buffer += ch

        if self._buffer:
            result.display.append(CLEAR_LINE + self._buffer)
        result.partial = self._buffer
        result.mid_line = bool(self._buffer)
        return result

    def flush(self) -> ReassemblyResult:
        """Terminate whatever is buffered; used when the stream ends."""
        result = ReassemblyResult()
        tail = self._decoder.decode(b"", final=True)
        if tail and not self._passthrough:
            self._buffer += tail
        elif tail:
            self._accumulate(tail)
        if self._pending_cr:
            self._pending_cr = False
            self._buffer = ""
        if self._buffer:
            self._emit(result)
        return result

    def _emit(self, result: ReassemblyResult) -> None:
        line = self._buffer
        self._buffer = ""
        result.lines.append(line)
        result.display.append(CLEAR_LINE + line + "\r\n")

    def _accumulate(self, text: str) -> None:
        self._passthrough_output += text
        overflow = len(self._passthrough_output) - self._passthrough_limit
        if overflow > 0:
            self._passthrough_output = self._passthrough_output[overflow:]


__all__ = ["LineReassembler", "ReassemblyResult"]
