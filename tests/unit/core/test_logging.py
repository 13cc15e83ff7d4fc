"""Tests for structured logging."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
import structlog

from gm_mechanics.core.logging import (
    add_app_context,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)


if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Restore structlog defaults after each test."""
    yield
    clear_context()
    structlog.reset_defaults()


def last_json_line(output: str) -> dict:
    lines = [line for line in output.splitlines() if line.strip()]
    return json.loads(lines[-1])


class TestLogging:
    """Tests for logging configuration and context."""

    def test_add_app_context(self) -> None:
        event = add_app_context(None, "info", {"event": "x"})

        assert event["app"] == "gm_mechanics"

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test JSON lines carry the event, level and keyword context."""
        configure_logging(level="INFO", json_format=True)

        get_logger("tests.json").info("Enemy spawned", enemy="Goblin", hp=7)

        record = last_json_line(capsys.readouterr().out)
        assert record["event"] == "Enemy spawned"
        assert record["enemy"] == "Goblin"
        assert record["hp"] == 7
        assert record["level"] == "info"
        assert record["app"] == "gm_mechanics"

    def test_level_filtering(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(level="WARNING", json_format=True)

        get_logger("tests.filter").info("Dropped")

        assert "Dropped" not in capsys.readouterr().out

    def test_bound_context(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test bound context is merged until it is unbound."""
        configure_logging(level="INFO", json_format=True)
        logger = get_logger("tests.context")

        bind_context(game_id="g1")
        logger.info("Combat started")
        first = last_json_line(capsys.readouterr().out)

        unbind_context("game_id")
        logger.info("Combat ended")
        second = last_json_line(capsys.readouterr().out)

        assert first["game_id"] == "g1"
        assert "game_id" not in second
