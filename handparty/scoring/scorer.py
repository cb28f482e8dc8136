"""
Round Scorer - Scores a sealed round and settles its result.

Scoring is split from settlement around the coordinator's lock:
- evaluate() is async and may be slow (one AI call per player); it
  runs without holding the session lock
- settle_round() is synchronous and mutates cumulative scores; it runs
  under the lock once the round is confirmed still current

A failure for one player never aborts the round: that player gets
ScoreData.fallback() and everyone else is scored normally.
"""

from __future__ import annotations
from typing import Iterable, Mapping, Sequence
import asyncio
import logging

from ..errors import ScoringUnavailable
from ..prompts.catalog import PromptItem
from ..session.state import Player, RoundEntry, RoundResult
from .evaluator import ScoreData, ScoreSource
from .ranking import build_leaderboard, rank_round

logger = logging.getLogger(__name__)


class RoundScorer:
    """
    Runs a score source over every entry of a round.

    Usage:
        scorer = RoundScorer(GeminiScoreSource(api_key=key), timeout=20)
        scores = await scorer.evaluate(ticket.entries, ticket.prompt)
    """

    def __init__(self, source: ScoreSource, timeout: float = 20.0):
        self.source = source
        self.timeout = timeout

    async def evaluate(
        self,
        entries: Sequence[RoundEntry],
        prompt: PromptItem,
    ) -> dict[str, ScoreData]:
        """Score all entries concurrently. Never raises for a single player's failure."""
        results = await asyncio.gather(
            *(self._evaluate_one(entry, prompt) for entry in entries)
        )
        return {entry.player_id: score for entry, score in zip(entries, results)}

    async def _evaluate_one(self, entry: RoundEntry, prompt: PromptItem) -> ScoreData:
        try:
            return await asyncio.wait_for(self.source.evaluate(entry, prompt), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Scoring timed out after %.1fs for %s", self.timeout, entry.player_id)
            return ScoreData.fallback()
        except ScoringUnavailable as e:
            logger.warning("Scoring unavailable for %s: %s", entry.player_id, e.message)
            return ScoreData.fallback(e.message)
        except Exception:
            logger.exception("Score source failed for %s", entry.player_id)
            return ScoreData.fallback()


def settle_round(
    round_number: int,
    prompt: PromptItem,
    entries: Sequence[RoundEntry],
    scores: Mapping[str, ScoreData],
    players: Iterable[Player],
) -> RoundResult:
    """
    Apply round scores to cumulative totals and build the RoundResult.

    Args:
        round_number: The round being sealed
        prompt: Prompt shown that round
        entries: Sealed entries in submission order (players still present)
        scores: Round score per player id; missing ids fall back to zero
        players: Current roster, in join order

    Returns:
        Immutable RoundResult with round ranking and cumulative leaderboard
    """
    roster = {p.player_id: p for p in players}
    resolved = {
        entry.player_id: scores.get(entry.player_id) or ScoreData.fallback()
        for entry in entries
    }

    for entry in entries:
        roster[entry.player_id].score += resolved[entry.player_id].points

    return RoundResult(
        round_number=round_number,
        prompt=prompt,
        outcomes=rank_round(entries, resolved),
        leaderboard=build_leaderboard(roster.values()),
    )
