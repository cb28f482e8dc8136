"""
Tests for configuration and the command-line simulator.
"""

import pytest

from ..cli import main, simulate
from ..config import CoordinatorConfig
from ..errors import ConfigError


class TestCoordinatorConfig:
    """Tests for CoordinatorConfig.from_env."""

    def test_defaults(self):
        config = CoordinatorConfig.from_env({})

        assert config.total_rounds == 3
        assert config.max_players == 8
        assert config.scoring_mode == "random"
        assert config.gemini_api_key is None
        assert config.scoring_timeout == 20.0
        assert config.allowed_origins == ["*"]

    def test_overrides(self):
        config = CoordinatorConfig.from_env({
            "HANDPARTY_TOTAL_ROUNDS": "5",
            "HANDPARTY_MAX_PLAYERS": "2",
            "HANDPARTY_SCORING": " Gemini ",
            "GEMINI_API_KEY": "key",
            "HANDPARTY_SCORING_TIMEOUT": "2.5",
            "HANDPARTY_LOG_LEVEL": "debug",
            "ALLOWED_ORIGINS": "http://a.test, http://b.test",
        })

        assert config.total_rounds == 5
        assert config.max_players == 2
        assert config.scoring_mode == "gemini"
        assert config.gemini_api_key == "key"
        assert config.scoring_timeout == 2.5
        assert config.log_level == "DEBUG"
        assert config.allowed_origins == ["http://a.test", "http://b.test"]

    @pytest.mark.parametrize("env", [
        {"HANDPARTY_TOTAL_ROUNDS": "three"},
        {"HANDPARTY_TOTAL_ROUNDS": "0"},
        {"HANDPARTY_MAX_PLAYERS": "0"},
        {"HANDPARTY_SCORING": "magic"},
        {"HANDPARTY_SCORING_TIMEOUT": "-1"},
    ])
    def test_invalid(self, env):
        with pytest.raises(ConfigError):
            CoordinatorConfig.from_env(env)


class TestSimulate:

    @pytest.mark.asyncio
    async def test_plays_every_round(self):
        """A simulated game produces one ranked result per round."""
        history = await simulate(players=3, rounds=2, seed=7)

        assert [r.round_number for r in history] == [1, 2]
        for result in history:
            assert sorted(o.rank for o in result.outcomes) == [1, 2, 3]
        assert history[0].prompt.id != history[1].prompt.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("players,rounds", [(0, 1), (-1, 1), (2, 0)])
    async def test_rejects_empty_game(self, players, rounds):
        with pytest.raises(ConfigError):
            await simulate(players=players, rounds=rounds, seed=1)

    def test_cli_reports_bad_player_count(self, monkeypatch, capsys):
        """`handparty simulate --players 0` exits 1 with a message, not a traceback."""
        monkeypatch.setattr("sys.argv", ["handparty", "simulate", "--players", "0"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        assert "Error: --players must be >= 1, got 0" in capsys.readouterr().out
