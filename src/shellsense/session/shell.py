"""A monitored interactive shell.

ShellSession owns one child shell spawned over plain pipes, the line
reassemblers for its stdout and stderr, the keystroke state machine, the
session timers, and the analysis scheduler. Nothing is shared between
sessions.

Lifecycle:
    session = ShellSession("term-1", SessionConfig(), analyzer, display=print)
    await session.start()
    await session.send_input("ls\r")
    ...
    await session.close()   # graceful, then forced, whole process group
"""

from __future__ import annotations

import asyncio
import os
import signal
from collections.abc import Callable
from enum import Enum
from typing import Any

from shellsense.core.config import SessionConfig
from shellsense.core.constants import GRACEFUL_TERMINATION_TIMEOUT, PROMPT, STREAM_READ_CHUNK_BYTES
from shellsense.core.errors import StreamFault
from shellsense.core.logging import get_logger
from shellsense.core.task_utils import spawn_logged
from shellsense.detection.aggregator import split_lines
from shellsense.resolution.models import ErrorResolution
from shellsense.session.analyzer import AnalysisScheduler, ErrorAnalyzer, ResolutionListener
from shellsense.stream.input import ActionKind, InputAction, InputState, InputStateMachine
from shellsense.stream.reassembler import LineReassembler
from shellsense.stream.timers import CancellableTimer

_logger = get_logger("session")

DisplayCallback = Callable[[str], None]
ExitListener = Callable[[int | None], None]


class SessionState(str, Enum):
    """Lifecycle state of a ShellSession."""

    CREATED = "created"
    RUNNING = "running"
    EXITED = "exited"  # the shell ended on its own
    CLOSED = "closed"  # torn down by the owner


class ShellSession:
    """One spawned shell plus everything that observes it."""

    def __init__(
        self,
        session_id: str,
        config: SessionConfig | None = None,
        analyzer: ErrorAnalyzer | None = None,
        *,
        display: DisplayCallback | None = None,
        local_echo: bool = True,
    ) -> None:
        self.session_id = session_id
        self.config = config or SessionConfig()
        self.state = SessionState.CREATED
        self.exit_code: int | None = None
        self._display = display
        # False when the host terminal already echoes what the user types
        self._local_echo = local_echo
        self._log = _logger.bind(session_id=session_id)

        self.input = InputStateMachine(
            self.config.interactive_programs, self.config.interactive_flags
        )
        self._stdout = LineReassembler(self.config.passthrough_buffer_chars)
        self._stderr = LineReassembler(self.config.passthrough_buffer_chars)
        self._transcript: list[str] = []
        self._transcript_chars = 0

        self.scheduler: AnalysisScheduler | None = None
        if analyzer is not None:
            self.scheduler = AnalysisScheduler(
                analyzer,
                session_id=session_id,
                debounce_seconds=self.config.debounce_seconds,
                dedup_seconds=self.config.notification_dedup_seconds,
            )
            self.scheduler.enabled = self.config.auto_analyze
        self._analyzer = analyzer

        self._fallback = CancellableTimer(
            self.config.fallback_prompt_seconds, self._on_fallback, name="fallback"
        )
        self._settle = CancellableTimer(
            self.config.prompt_settle_seconds, self._on_settle, name="prompt-settle"
        )
        self._process: asyncio.subprocess.Process | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._exit_listeners: list[ExitListener] = []
        self._exited = asyncio.Event()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def mode(self) -> str:
        """"passthrough" while an interactive program runs, else "line"."""
        return "passthrough" if self.input.passthrough else "line"

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    @property
    def running(self) -> bool:
        return self.state is SessionState.RUNNING

    @property
    def transcript(self) -> str:
        """Output lines seen so far, newest last, bounded in size."""
        return "\n".join(self._transcript)

    @property
    def history(self) -> list[str]:
        return list(self.input.history.entries)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_resolution_listener(self, listener: ResolutionListener) -> None:
        if self.scheduler is not None:
            self.scheduler.add_listener(listener)

    def add_exit_listener(self, listener: ExitListener) -> None:
        self._exit_listeners.append(listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Spawn the shell and start reading its output.

        Raises:
            StreamFault: If the shell cannot be spawned.
        """
        if self.state is not SessionState.CREATED:
            raise RuntimeError(f"Session {self.session_id} already started")

        env = {**os.environ, **self.config.env, "PS1": PROMPT, "TERM": "dumb"}
        cmd = [self.config.shell, *self.config.shell_args]
        try:
            # start_new_session puts the shell in its own process group
            self._process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.config.working_directory,
                env=env,
                start_new_session=True,
            )
        except OSError as e:
            raise StreamFault(
                f"Cannot spawn {self.config.shell}: {e}", session_id=self.session_id
            ) from e

        self.state = SessionState.RUNNING
        self._log.info("session.spawned", pid=self._process.pid, shell=self.config.shell)
        self._spawn(self._read_stream(self._process.stdout, self._stdout), "stdout")
        self._spawn(self._read_stream(self._process.stderr, self._stderr), "stderr")
        self._spawn(self._watch_exit(), "exit-watch")
        self._emit(self.input.prompt().data)

    async def wait(self) -> int | None:
        """Wait for the shell to end and return its exit code."""
        await self._exited.wait()
        return self.exit_code

    async def close(self) -> None:
        """Tear the session down.

        Cancels every timer and the in-flight analysis, then terminates the
        shell's process group (SIGTERM, then SIGKILL after a grace period).
        """
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED
        self._fallback.close()
        self._settle.close()
        if self.scheduler is not None:
            await self.scheduler.close()

        process = self._process
        if process is not None and process.returncode is None:
            await self._terminate_process(process)

        current = asyncio.current_task()
        tasks = [t for t in self._tasks if t is not current]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._exited.set()
        self._log.info("session.closed", exit_code=self.exit_code)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    async def send_input(self, data: str) -> bool:
        """Feed keystrokes (or a paste) through the line editor.

        Returns False when the shell can no longer be written to; the exit
        watcher then ends the session and reports the exit status.
        """
        if not self.running:
            return False
        try:
            for action in self.input.handle(data):
                await self._apply(action)
        except StreamFault as e:
            self._log.warning("session.write_failed", error=str(e), exit_code=e.exit_code)
            return False
        return True

    async def _apply(self, action: InputAction) -> None:
        if action.kind is ActionKind.PROMPT:
            self._emit(action.data)
        elif action.kind is ActionKind.ECHO:
            if self._local_echo:
                self._emit(action.data)
        elif action.kind is ActionKind.WRITE:
            await self._write(action.data)
        elif action.kind is ActionKind.SUBMIT:
            self._log.debug("session.command_submitted", passthrough=self.input.passthrough)
            await self._write(action.data + "\n")
            if self.input.state is InputState.AWAITING_COMPLETION:
                self._fallback.start()
        elif action.kind is ActionKind.MODE:
            self._set_mode(action.data == "passthrough")

    async def _write(self, data: str) -> None:
        process = self._process
        if process is None or process.stdin is None or process.stdin.is_closing():
            raise StreamFault("Shell stdin is closed", session_id=self.session_id, exit_code=self.exit_code)
        try:
            process.stdin.write(data.encode("utf-8"))
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise StreamFault(
                f"Write to shell failed: {e}", session_id=self.session_id, exit_code=self.exit_code
            ) from e

    def _set_mode(self, passthrough: bool) -> None:
        was_passthrough = self._stdout.passthrough
        self._stdout.set_passthrough(passthrough)
        self._stderr.set_passthrough(passthrough)
        self._log.debug("session.mode_changed", mode="passthrough" if passthrough else "line")
        if was_passthrough and not passthrough:
            captured = self._stdout.take_passthrough_output() + self._stderr.take_passthrough_output()
            if captured:
                self._accept_lines(split_lines(captured))

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    async def _read_stream(
        self,
        stream: asyncio.StreamReader | None,
        reassembler: LineReassembler,
    ) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(STREAM_READ_CHUNK_BYTES)
            if not chunk:
                break
            self._on_output(chunk, reassembler)
        tail = reassembler.flush()
        for text in tail.display:
            self._emit(text)
        self._accept_lines(tail.lines)

    def _on_output(self, chunk: bytes, reassembler: LineReassembler) -> None:
        self._fallback.cancel()
        result = reassembler.feed(chunk)
        for text in result.display:
            self._emit(text)
        self._accept_lines(result.lines)
        if self.input.state is InputState.AWAITING_COMPLETION:
            self._settle.start()

    def _accept_lines(self, lines: list[str]) -> None:
        if not lines:
            return
        for line in lines:
            self._transcript.append(line)
            self._transcript_chars += len(line) + 1
        while self._transcript_chars > self.config.transcript_chars and len(self._transcript) > 1:
            self._transcript_chars -= len(self._transcript.pop(0)) + 1
        if self.scheduler is not None:
            self.scheduler.feed(lines)

    def _emit(self, text: str) -> None:
        if not text or self._display is None or self.state is SessionState.CLOSED:
            return
        try:
            self._display(text)
        except Exception:
            self._log.exception("session.display_failed")

    def _on_settle(self) -> None:
        if self._stdout.partial or self._stderr.partial:
            self._emit("\r\n")
        for action in self.input.output_settled():
            self._emit(action.data)

    def _on_fallback(self) -> None:
        for action in self.input.fallback_elapsed():
            self._emit(action.data)

    # ------------------------------------------------------------------
    # Exit and teardown
    # ------------------------------------------------------------------

    async def _watch_exit(self) -> None:
        process = self._process
        if process is None:
            return
        returncode = await process.wait()
        readers = [t for t in self._tasks if t.get_name().endswith(("stdout", "stderr"))]
        if readers:
            await asyncio.gather(*readers, return_exceptions=True)
        self.exit_code = returncode
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.EXITED
        self._fallback.close()
        self._settle.close()
        if self.scheduler is not None:
            await self.scheduler.close()
        current = asyncio.current_task()
        leftover = [t for t in self._tasks if t is not current]
        for task in leftover:
            task.cancel()
        if leftover:
            await asyncio.gather(*leftover, return_exceptions=True)
        self._emit(f"\r\n[Shell exited with code {returncode}]\r\n")
        self._log.info("session.exited", exit_code=returncode)
        for listener in self._exit_listeners:
            try:
                listener(returncode)
            except Exception:
                self._log.exception("session.exit_listener_failed")
        self._exited.set()

    async def _terminate_process(self, process: asyncio.subprocess.Process) -> None:
        """Gracefully terminate the process group, then force kill if needed."""
        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()
        self._signal_group(process, signal.SIGTERM)
        try:
            await asyncio.wait_for(process.wait(), timeout=GRACEFUL_TERMINATION_TIMEOUT)
        except TimeoutError:
            self._log.warning("session.kill_forced", pid=process.pid)
            await self._kill_process_group(process)
        self.exit_code = process.returncode

    @staticmethod
    def _signal_group(process: asyncio.subprocess.Process, sig: signal.Signals) -> None:
        try:
            os.killpg(os.getpgid(process.pid), sig)
        except (OSError, ProcessLookupError):
            # Group already gone; fall back to the shell itself
            try:
                process.send_signal(sig)
            except ProcessLookupError:
                pass

    async def _kill_process_group(self, process: asyncio.subprocess.Process) -> None:
        self._signal_group(process, signal.SIGKILL)
        try:
            await asyncio.wait_for(process.wait(), timeout=GRACEFUL_TERMINATION_TIMEOUT)
        except TimeoutError:
            self._log.error("session.kill_failed", pid=process.pid)

    # ------------------------------------------------------------------
    # Analysis controls
    # ------------------------------------------------------------------

    def set_monitoring(self, enabled: bool) -> None:
        """Pause or resume automatic analysis; output is still recorded."""
        if self.scheduler is None:
            return
        if enabled:
            self.scheduler.resume()
        else:
            self.scheduler.pause()
        self._log.info("session.monitoring", enabled=enabled)

    def clear_notifications(self) -> None:
        if self.scheduler is not None:
            self.scheduler.clear_notifications()

    async def analyze_transcript(self) -> list[ErrorResolution]:
        """Analyse the whole transcript now, bypassing notification dedup."""
        if self._analyzer is None:
            return []
        return await self._analyzer.analyze_text(self.transcript)

    def _spawn(self, coro: Any, label: str) -> None:
        spawn_logged(
            coro,
            self._log,
            f"session.{label.replace('-', '_')}_failed",
            name=f"{self.session_id}-{label}",
            tracked=self._tasks,
        )


__all__ = ["DisplayCallback", "ExitListener", "SessionState", "ShellSession"]
