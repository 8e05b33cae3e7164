"""Pytest fixtures for ShellSense tests."""

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

from shellsense.detection import DetectedError, ErrorPattern


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset structlog, root handlers and CLI logging options around each test."""
    from shellsense.cli import helpers as cli_helpers

    cli_helpers.reset_logging_state()
    cli_helpers.set_output_level(cli_helpers.OutputLevel.NORMAL)
    structlog.reset_defaults()

    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    cli_helpers.reset_logging_state()
    cli_helpers.set_output_level(cli_helpers.OutputLevel.NORMAL)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture
def npm_pattern() -> ErrorPattern:
    """The minimal npm pattern used in the E404 scenario."""
    return ErrorPattern.model_validate({
        "name": "npm",
        "type": "npm",
        "pattern": r"npm ERR! (.*)",
    })


@pytest.fixture
def module_error() -> DetectedError:
    return DetectedError(
        message="ModuleNotFoundError: No module named 'requests'",
        type="python",
        pattern_name="python-module-not-found",
    )


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """An empty directory used as a provider search root."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root
