"""Tests for SessionManager."""

from __future__ import annotations

import asyncio

import pytest

from shellsense.core.config import SessionConfig
from shellsense.core.errors import StreamFault
from shellsense.session import SessionManager, SessionState

pytestmark = pytest.mark.slow

CONFIG = SessionConfig(shell="/bin/sh", fallback_prompt_seconds=0.1, prompt_settle_seconds=0.05)


class TestSessionManager:
    """Tests for session creation, lookup and teardown."""

    @pytest.mark.asyncio
    async def test_create_assigns_ids(self) -> None:
        manager = SessionManager(config=CONFIG)
        try:
            first = await manager.create()
            second = await manager.create()
            assert [first.session_id, second.session_id] == ["term-1", "term-2"]
            assert len(manager) == 2
            assert "term-1" in manager
            assert manager.get("term-2") is second
        finally:
            await manager.close_all()
        assert len(manager) == 0

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self) -> None:
        manager = SessionManager(config=CONFIG)
        try:
            await manager.create("main")
            with pytest.raises(ValueError, match="already exists"):
                await manager.create("main")
        finally:
            await manager.close_all()

    @pytest.mark.asyncio
    async def test_failed_start_not_registered(self) -> None:
        manager = SessionManager(config=CONFIG)
        with pytest.raises(StreamFault):
            await manager.create("broken", config=SessionConfig(shell="/nonexistent/shell"))
        assert "broken" not in manager

    @pytest.mark.asyncio
    async def test_close_one(self) -> None:
        manager = SessionManager(config=CONFIG)
        session = await manager.create("main")
        assert await manager.close("main") is True
        assert session.state is SessionState.CLOSED
        assert await manager.close("main") is False

    @pytest.mark.asyncio
    async def test_exited_session_forgotten(self) -> None:
        manager = SessionManager(config=CONFIG)
        session = await manager.create("main")
        await session.send_input("exit 0\r")
        await asyncio.wait_for(session.wait(), timeout=5)
        assert "main" not in manager
        await manager.close_all()

    @pytest.mark.asyncio
    async def test_status(self) -> None:
        manager = SessionManager(config=CONFIG)
        try:
            session = await manager.create("main")
            [status] = manager.status()
            assert status["session_id"] == "main"
            assert status["state"] == "running"
            assert status["mode"] == "line"
            assert status["pid"] == session.pid
            assert status["exit_code"] is None
        finally:
            await manager.close_all()
