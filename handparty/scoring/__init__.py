"""
Scoring Module - Turns sealed submissions into ranked results.

- evaluator: the external score source (Gemini, or synthetic stand-ins)
- ranking: pure ranking functions
- scorer: runs the source for a round and settles the results
"""

from .evaluator import (
    ScoreData,
    ScoreSource,
    GeminiScoreSource,
    RandomScoreSource,
    FixedScoreSource,
    build_score_source,
)
from .ranking import rank_round, build_leaderboard
from .scorer import RoundScorer, settle_round

__all__ = [
    "ScoreData",
    "ScoreSource",
    "GeminiScoreSource",
    "RandomScoreSource",
    "FixedScoreSource",
    "build_score_source",
    "rank_round",
    "build_leaderboard",
    "RoundScorer",
    "settle_round",
]
