"""
Ranking - Pure functions that order players by score.

Ranks are 1-based sorted positions from a stable descending sort, so
equal scores keep their input order and every rank from 1..N appears
exactly once. Both rankings are recomputed from scratch every round.
"""

from __future__ import annotations
from typing import Iterable, Mapping, Sequence, TYPE_CHECKING

from ..session.state import LeaderboardEntry, PlayerRoundOutcome

if TYPE_CHECKING:
    from ..session.state import Player, RoundEntry
    from .evaluator import ScoreData


def rank_round(
    entries: Sequence[RoundEntry],
    scores: Mapping[str, ScoreData],
) -> tuple[PlayerRoundOutcome, ...]:
    """
    Rank one round's entries by round score.

    `entries` must already be in submission order; that order breaks ties.
    """
    ordered = sorted(entries, key=lambda e: -scores[e.player_id].points)
    return tuple(
        PlayerRoundOutcome(
            player_id=entry.player_id,
            player_name=entry.player_name,
            hand_shape=entry.submission.hand_shape,
            score=scores[entry.player_id].points,
            feedback=scores[entry.player_id].feedback,
            rank=position,
        )
        for position, entry in enumerate(ordered, start=1)
    )


def build_leaderboard(players: Iterable[Player]) -> tuple[LeaderboardEntry, ...]:
    """Rank players by cumulative score; ties keep roster (join) order."""
    ordered = sorted(players, key=lambda p: -p.score)
    return tuple(
        LeaderboardEntry(
            player_id=player.player_id,
            player_name=player.name,
            total_score=player.score,
            rank=position,
        )
        for position, player in enumerate(ordered, start=1)
    )
