"""Tests for the headless auto-player runner."""

from __future__ import annotations

import sys

import pytest
from loguru import logger

from survival.headless import build_parser, main, run
from survival.simulation import GAME_OVER, LEVEL_COMPLETE

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _restore_logger():
    yield
    # main() swaps the loguru sink for one on the captured stderr
    logger.remove()
    logger.add(sys.stderr)


class TestRun:
    def test_rounds_end_in_a_terminal_state(self, capsys):
        args = build_parser().parse_args(["--seed", "3", "--rounds", "3"])
        results = run(args)
        assert 1 <= len(results) <= 3
        assert results[0].level == 1
        for r in results:
            assert r.outcome in (LEVEL_COMPLETE, GAME_OVER)
        for r in results[:-1]:
            assert r.outcome == LEVEL_COMPLETE
        assert "Best level reached" in capsys.readouterr().out

    def test_levels_increase_round_to_round(self, capsys):
        args = build_parser().parse_args(["--seed", "1", "--rounds", "2", "--reaction", "0.1"])
        results = run(args)
        assert [r.level for r in results] == list(range(1, len(results) + 1))

    def test_tiny_area_loses_the_first_round(self, capsys):
        args = build_parser().parse_args(
            ["--seed", "5", "--width", "40", "--height", "40", "--reaction", "10"]
        )
        [result] = run(args)
        assert result.outcome == GAME_OVER

    def test_start_at_higher_level(self, capsys):
        args = build_parser().parse_args(["--seed", "2", "--level", "6", "--rounds", "1"])
        [result] = run(args)
        assert result.level == 6


class TestMain:
    def test_exit_code_zero(self, capsys):
        assert main(["--seed", "9", "--rounds", "1", "--log-level", "WARNING"]) == 0

    def test_bad_level(self, capsys):
        assert main(["--level", "0"]) == 2
        assert "--level" in capsys.readouterr().err

    def test_bad_reaction(self, capsys):
        assert main(["--reaction", "0"]) == 2
