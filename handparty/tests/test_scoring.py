"""
Tests for ranking, the round scorer and round settlement.

Tests:
- Stable descending ranks, ties broken by submission order
- Scoring failures and timeouts fall back to zero points
- Cumulative scores and leaderboard after settlement
"""

import asyncio

import pytest

from ..prompts.catalog import DEFAULT_PROMPTS
from ..scoring.evaluator import FALLBACK_FEEDBACK, FixedScoreSource, ScoreData, ScoreSource
from ..scoring.ranking import build_leaderboard, rank_round
from ..scoring.scorer import RoundScorer, settle_round
from ..session.state import Player
from .conftest import make_entry

PROMPT = DEFAULT_PROMPTS[0]


class SlowScoreSource(ScoreSource):
    """Never answers within any reasonable timeout."""

    async def evaluate(self, entry, prompt):
        await asyncio.sleep(10)
        return ScoreData(points=100, feedback="too late")


class BrokenScoreSource(ScoreSource):
    async def evaluate(self, entry, prompt):
        raise RuntimeError("boom")


class TestRanking:
    """Tests for rank_round and build_leaderboard."""

    def test_higher_score_ranks_first(self):
        """H submits first with 70, P second with 90: P is 1st, H is 2nd."""
        entries = [make_entry("H", order=1), make_entry("P", order=2)]
        scores = {"H": ScoreData(70, "ok"), "P": ScoreData(90, "great")}

        outcomes = rank_round(entries, scores)

        assert [(o.player_id, o.rank, o.score) for o in outcomes] == [("P", 1, 90), ("H", 2, 70)]
        assert outcomes[0].feedback == "great"

    def test_ties_keep_submission_order(self):
        """Equal scores keep submission order and still get distinct ranks."""
        entries = [make_entry("a", order=1), make_entry("b", order=2), make_entry("c", order=3)]
        scores = {"a": ScoreData(40, ""), "b": ScoreData(80, ""), "c": ScoreData(40, "")}

        outcomes = rank_round(entries, scores)

        assert [o.player_id for o in outcomes] == ["b", "a", "c"]
        assert [o.rank for o in outcomes] == [1, 2, 3]

    def test_ranks_are_a_permutation(self):
        entries = [make_entry(str(i), order=i) for i in range(6)]
        scores = {str(i): ScoreData(50, "") for i in range(6)}

        ranks = sorted(o.rank for o in rank_round(entries, scores))

        assert ranks == [1, 2, 3, 4, 5, 6]

    def test_leaderboard_ties_keep_join_order(self):
        players = [
            Player("a", "A", score=10),
            Player("b", "B", score=30),
            Player("c", "C", score=10),
        ]

        board = build_leaderboard(players)

        assert [(e.player_id, e.rank, e.total_score) for e in board] == [
            ("b", 1, 30), ("a", 2, 10), ("c", 3, 10),
        ]


class TestRoundScorer:
    """Tests for RoundScorer."""

    @pytest.mark.asyncio
    async def test_scores_every_entry(self):
        source = FixedScoreSource({"H": 70, "P": 90})
        scorer = RoundScorer(source)

        scores = await scorer.evaluate([make_entry("H"), make_entry("P")], PROMPT)

        assert scores["H"].points == 70
        assert scores["P"].points == 90
        assert sorted(source.calls) == [("H", PROMPT.id), ("P", PROMPT.id)]

    @pytest.mark.asyncio
    async def test_unavailable_falls_back_for_that_player_only(self):
        """One failing player gets 0 with the source's message; others are scored."""
        scorer = RoundScorer(FixedScoreSource({"H": 70}, failing={"P"}))

        scores = await scorer.evaluate([make_entry("H"), make_entry("P")], PROMPT)

        assert scores["H"].points == 70
        assert scores["P"] == ScoreData(0, "Scripted failure for P")

    @pytest.mark.asyncio
    async def test_unexpected_error_falls_back(self):
        scorer = RoundScorer(BrokenScoreSource())

        scores = await scorer.evaluate([make_entry("H")], PROMPT)

        assert scores["H"] == ScoreData.fallback()
        assert scores["H"].feedback == FALLBACK_FEEDBACK

    @pytest.mark.asyncio
    async def test_timeout_falls_back(self):
        scorer = RoundScorer(SlowScoreSource(), timeout=0.01)

        scores = await scorer.evaluate([make_entry("H")], PROMPT)

        assert scores["H"].points == 0

    @pytest.mark.asyncio
    async def test_empty_round(self):
        scorer = RoundScorer(FixedScoreSource())
        assert await scorer.evaluate([], PROMPT) == {}


class TestSettleRound:
    """Tests for settle_round."""

    def test_first_round_totals_equal_round_scores(self):
        """In round 1 the leaderboard totals equal the round scores."""
        players = [Player("H", "Hana"), Player("P", "Pico")]
        entries = [make_entry("H", "Hana", order=1), make_entry("P", "Pico", order=2)]
        scores = {"H": ScoreData(70, ""), "P": ScoreData(90, "")}

        result = settle_round(1, PROMPT, entries, scores, players)

        assert result.round_number == 1
        assert result.prompt is PROMPT
        assert [(o.player_id, o.rank) for o in result.outcomes] == [("P", 1), ("H", 2)]
        assert [(e.player_id, e.total_score, e.rank) for e in result.leaderboard] == [
            ("P", 90, 1), ("H", 70, 2),
        ]
        assert players[0].score == 70
        assert players[1].score == 90

    def test_scores_accumulate(self):
        players = [Player("H", "Hana", score=100), Player("P", "Pico", score=10)]
        entries = [make_entry("H", order=1), make_entry("P", order=2)]

        result = settle_round(2, PROMPT, entries, {"H": ScoreData(0, ""), "P": ScoreData(50, "")}, players)

        assert [(e.player_id, e.total_score) for e in result.leaderboard] == [("H", 100), ("P", 60)]
        assert [o.player_id for o in result.outcomes] == ["P", "H"]

    def test_missing_score_falls_back(self):
        players = [Player("H", "Hana")]

        result = settle_round(1, PROMPT, [make_entry("H")], {}, players)

        assert result.outcomes[0].score == 0
        assert result.outcomes[0].feedback == FALLBACK_FEEDBACK

    def test_result_is_immutable(self):
        result = settle_round(1, PROMPT, [make_entry("H")], {"H": ScoreData(5, "")}, [Player("H", "H")])
        with pytest.raises(AttributeError):
            result.round_number = 2
