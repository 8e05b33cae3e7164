"""Session arena.

SessionManager owns every live ShellSession, keyed by session id. Sessions
are removed when their shell exits or when they are closed, and
``close_all()`` tears everything down at host shutdown.
"""

from __future__ import annotations

import asyncio
import itertools
from typing import Any

from shellsense.core.config import SessionConfig
from shellsense.core.logging import get_logger
from shellsense.session.analyzer import ErrorAnalyzer
from shellsense.session.shell import DisplayCallback, ShellSession

_logger = get_logger("session.manager")


class SessionManager:
    """Creates, tracks and tears down shell sessions."""

    def __init__(
        self,
        analyzer: ErrorAnalyzer | None = None,
        config: SessionConfig | None = None,
    ) -> None:
        self._analyzer = analyzer
        self._config = config or SessionConfig()
        self._sessions: dict[str, ShellSession] = {}
        self._counter = itertools.count(1)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    @property
    def ids(self) -> list[str]:
        return list(self._sessions)

    def get(self, session_id: str) -> ShellSession | None:
        return self._sessions.get(session_id)

    async def create(
        self,
        session_id: str | None = None,
        *,
        config: SessionConfig | None = None,
        display: DisplayCallback | None = None,
        local_echo: bool = True,
    ) -> ShellSession:
        """Spawn a new session and start it.

        Raises:
            ValueError: If ``session_id`` is already in use.
            StreamFault: If the shell cannot be spawned.
        """
        if session_id is None:
            session_id = self._next_id()
        if session_id in self._sessions:
            raise ValueError(f"Session '{session_id}' already exists")

        session = ShellSession(
            session_id,
            config or self._config,
            self._analyzer,
            display=display,
            local_echo=local_echo,
        )
        session.add_exit_listener(lambda _code: self._forget(session_id, session))
        self._sessions[session_id] = session
        try:
            await session.start()
        except Exception:
            self._sessions.pop(session_id, None)
            raise
        _logger.info("manager.session_created", session_id=session_id, active=len(self))
        return session

    async def close(self, session_id: str) -> bool:
        """Close one session. Returns False when the id is unknown."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.close()
        _logger.info("manager.session_closed", session_id=session_id, active=len(self))
        return True

    async def close_all(self) -> None:
        sessions = list(self._sessions.values())
        self._sessions.clear()
        if not sessions:
            return
        results = await asyncio.gather(*(s.close() for s in sessions), return_exceptions=True)
        for session, result in zip(sessions, results, strict=True):
            if isinstance(result, BaseException):
                _logger.error(
                    "manager.close_failed",
                    session_id=session.session_id,
                    error=str(result),
                )
        _logger.info("manager.closed_all", count=len(sessions))

    def status(self) -> list[dict[str, Any]]:
        return [
            {
                "session_id": s.session_id,
                "state": s.state.value,
                "mode": s.mode,
                "pid": s.pid,
                "exit_code": s.exit_code,
            }
            for s in self._sessions.values()
        ]

    def _next_id(self) -> str:
        while True:
            candidate = f"term-{next(self._counter)}"
            if candidate not in self._sessions:
                return candidate

    def _forget(self, session_id: str, session: ShellSession) -> None:
        if self._sessions.get(session_id) is session:
            del self._sessions[session_id]
            _logger.debug("manager.session_exited", session_id=session_id, exit_code=session.exit_code)


__all__ = ["SessionManager"]
