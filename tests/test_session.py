"""Tests for ShellSession against a real /bin/sh."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

import pytest

from shellsense.core.config import SessionConfig
from shellsense.core.errors import StreamFault
from shellsense.detection import ErrorAggregator, ErrorPattern, PatternMatcher
from shellsense.resolution import ErrorResolution, ResolutionDispatcher
from shellsense.resolution.providers.web import WebSearchProvider
from shellsense.session import ErrorAnalyzer, SessionState, ShellSession
from shellsense.stream.input import InputState

pytestmark = pytest.mark.slow

FAST = SessionConfig(
    shell="/bin/sh",
    debounce_seconds=0.05,
    fallback_prompt_seconds=0.1,
    prompt_settle_seconds=0.05,
    interactive_programs=["cat"],
)


async def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    """Poll ``predicate`` until it holds or fail after ``timeout`` seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            pytest.fail("condition not met in time")
        await asyncio.sleep(0.02)


@asynccontextmanager
async def running(
    screen: list[str],
    analyzer: ErrorAnalyzer | None = None,
    *,
    local_echo: bool = True,
) -> AsyncIterator[ShellSession]:
    """Start a fast-timer session drawing into ``screen``; close it afterwards."""
    shell = ShellSession("term-test", FAST, analyzer, display=screen.append, local_echo=local_echo)
    await shell.start()
    try:
        yield shell
    finally:
        await shell.close()


def npm_analyzer(pattern: ErrorPattern) -> ErrorAnalyzer:
    return ErrorAnalyzer(
        ErrorAggregator(PatternMatcher([pattern])),
        ResolutionDispatcher([WebSearchProvider()]),
    )


@pytest.fixture
def screen() -> list[str]:
    return []


class TestLifecycle:
    """Tests for spawn, exit and teardown."""

    @pytest.mark.asyncio
    async def test_start_draws_prompt(self, screen: list[str]) -> None:
        async with running(screen) as session:
            assert session.state is SessionState.RUNNING
            assert session.pid is not None
            assert screen[0].endswith("$ ")

    @pytest.mark.asyncio
    async def test_start_twice_rejected(self, screen: list[str]) -> None:
        async with running(screen) as session:
            with pytest.raises(RuntimeError, match="already started"):
                await session.start()

    @pytest.mark.asyncio
    async def test_spawn_failure(self) -> None:
        shell = ShellSession("term-bad", SessionConfig(shell="/nonexistent/shell"))
        with pytest.raises(StreamFault) as exc_info:
            await shell.start()
        assert exc_info.value.session_id == "term-bad"

    @pytest.mark.asyncio
    async def test_shell_exit_reported(self, screen: list[str]) -> None:
        exit_codes: list[int | None] = []
        async with running(screen) as session:
            session.add_exit_listener(exit_codes.append)
            await session.send_input("exit 3\r")
            code = await asyncio.wait_for(session.wait(), timeout=5)

            assert code == 3
            assert exit_codes == [3]
            assert session.state is SessionState.EXITED
            assert "[Shell exited with code 3]" in "".join(screen)
            assert await session.send_input("echo late\r") is False

    @pytest.mark.asyncio
    async def test_close_terminates_shell(self, screen: list[str]) -> None:
        shell = ShellSession("term-close", FAST, display=screen.append)
        await shell.start()
        await shell.send_input("sleep 30 &\r")
        await shell.close()

        assert shell.state is SessionState.CLOSED
        assert shell.exit_code is not None
        assert shell.running is False
        await shell.close()
        assert "[Shell exited" not in "".join(screen)


class TestOutput:
    """Tests for output capture and line editing."""

    @pytest.mark.asyncio
    async def test_command_output_captured(self, screen: list[str]) -> None:
        async with running(screen) as session:
            await session.send_input("echo hi\r")
            await wait_for(lambda: "hi" in session.transcript.splitlines())

            assert session.history == ["echo hi"]
            text = "".join(screen)
            assert "echo hi" in text
            assert "hi\r\n" in text

    @pytest.mark.asyncio
    async def test_stderr_captured(self, screen: list[str]) -> None:
        async with running(screen) as session:
            await session.send_input("echo oops >&2\r")
            await wait_for(lambda: "oops" in session.transcript)

    @pytest.mark.asyncio
    async def test_prompt_returns_after_output(self, screen: list[str]) -> None:
        async with running(screen) as session:
            await session.send_input("echo done\r")
            await wait_for(lambda: "done" in session.transcript)
            await wait_for(lambda: session.input.state is InputState.EDITING)
            assert screen[-1].endswith("$ ")

    @pytest.mark.asyncio
    async def test_fallback_prompt_without_output(self, screen: list[str]) -> None:
        async with running(screen) as session:
            prompts_before = sum(s.endswith("$ ") for s in screen)
            await session.send_input("true\r")
            await wait_for(lambda: sum(s.endswith("$ ") for s in screen) > prompts_before)
            assert session.input.state is InputState.EDITING

    @pytest.mark.asyncio
    async def test_local_echo_disabled(self, screen: list[str]) -> None:
        async with running(screen, local_echo=False) as session:
            await session.send_input("echo quiet\r")
            await wait_for(lambda: "quiet" in session.transcript)
            assert "echo quiet" not in "".join(screen)


class TestPassthrough:
    """Tests for interactive program mode."""

    @pytest.mark.asyncio
    async def test_output_analysed_on_return(self, screen: list[str]) -> None:
        async with running(screen, local_echo=False) as session:
            await session.send_input("cat\r")
            assert session.mode == "passthrough"

            await session.send_input("npm ERR! boom\r")
            await wait_for(lambda: "npm ERR! boom" in "".join(screen))
            assert "npm ERR! boom" not in session.transcript

            await session.send_input("\x04")
            assert session.mode == "line"
            assert "npm ERR! boom" in session.transcript.splitlines()


class TestAnalysis:
    """Tests for automatic analysis of session output."""

    @pytest.mark.asyncio
    async def test_error_in_output_resolved(
        self, screen: list[str], npm_pattern: ErrorPattern
    ) -> None:
        received: list[ErrorResolution] = []
        async with running(screen, npm_analyzer(npm_pattern)) as session:
            session.add_resolution_listener(received.append)
            await session.send_input("echo 'npm ERR! code E404'\r")
            await wait_for(lambda: bool(received))
            assert received[0].error.message == "code E404"
            assert received[0].resolutions

            again = await session.analyze_transcript()
            assert [r.error.message for r in again] == ["code E404"]

    @pytest.mark.asyncio
    async def test_monitoring_paused(self, screen: list[str], npm_pattern: ErrorPattern) -> None:
        received: list[ErrorResolution] = []
        async with running(screen, npm_analyzer(npm_pattern)) as session:
            session.add_resolution_listener(received.append)
            session.set_monitoring(False)
            await session.send_input("echo 'npm ERR! code E404'\r")
            await wait_for(lambda: "npm ERR! code E404" in session.transcript)
            await asyncio.sleep(0.2)
            assert received == []

    @pytest.mark.asyncio
    async def test_exit_stops_analysis(self, screen: list[str], npm_pattern: ErrorPattern) -> None:
        received: list[ErrorResolution] = []
        async with running(screen, npm_analyzer(npm_pattern)) as session:
            session.add_resolution_listener(received.append)
            await session.send_input("echo 'npm ERR! code E404'; exit 0\r")
            await asyncio.wait_for(session.wait(), timeout=5)

            scheduler = session.scheduler
            assert scheduler is not None
            assert session.state is SessionState.EXITED
            assert scheduler.closed
            assert not scheduler.busy
            scheduler.feed(["npm ERR! code E500"])
            assert scheduler.pending_lines == 0
            await asyncio.sleep(0.2)
            assert all(r.error.message != "code E500" for r in received)
