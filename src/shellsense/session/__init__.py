"""Shell sessions, the session arena and per-session analysis scheduling."""

from shellsense.session.analyzer import AnalysisScheduler, ErrorAnalyzer, ResolutionListener
from shellsense.session.manager import SessionManager
from shellsense.session.shell import SessionState, ShellSession

__all__ = [
    "AnalysisScheduler",
    "ErrorAnalyzer",
    "ResolutionListener",
    "SessionManager",
    "SessionState",
    "ShellSession",
]
