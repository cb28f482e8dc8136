"""
Session State - Data structures owned by a session.

A session exclusively owns its players and round results.
Round results are immutable once created; players are mutated only by
the session manager (submissions) and the round scorer (scores).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import time

from ..prompts.catalog import HandShape, PromptItem


class SessionPhase(str, Enum):
    """Lifecycle phase of the shared session. Values are the wire strings."""
    WAITING_FOR_PLAYERS = "waitingForPlayers"
    PLAYING = "playing"
    ROUND_END = "roundEnd"
    GAME_END = "gameEnd"


@dataclass
class Submission:
    """A player's hand-shape choice for the open round."""
    hand_shape: HandShape
    order: int  # Session-wide sequence, used as the ranking tie-break
    image: str | None = None  # Captured photo as a data URL
    submitted_at: float = field(default_factory=time.time)


@dataclass
class Player:
    """
    A player in the session.

    Created on join, removed on disconnect. `score` is cumulative and
    never decreases within a session.
    """
    player_id: str
    name: str
    score: int = 0
    is_host: bool = False
    submission: Submission | None = None
    joined_at: float = field(default_factory=time.time)

    @property
    def has_selected(self) -> bool:
        return self.submission is not None


@dataclass(frozen=True)
class RoundEntry:
    """One player's sealed submission, as handed to the scorer."""
    player_id: str
    player_name: str
    submission: Submission


@dataclass(frozen=True)
class PlayerRoundOutcome:
    """A ranked per-player result of one round."""
    player_id: str
    player_name: str
    hand_shape: HandShape
    score: int
    feedback: str
    rank: int


@dataclass(frozen=True)
class LeaderboardEntry:
    """A ranked cumulative total."""
    player_id: str
    player_name: str
    total_score: int
    rank: int


@dataclass(frozen=True)
class RoundResult:
    """
    The sealed outcome of one round.

    `leaderboard` is the cumulative ranking computed right after this
    round's scores were applied.
    """
    round_number: int
    prompt: PromptItem
    outcomes: tuple[PlayerRoundOutcome, ...]
    leaderboard: tuple[LeaderboardEntry, ...]


@dataclass(frozen=True)
class SealTicket:
    """
    Proof that a round met the seal condition.

    Scoring runs outside the coordinator lock; the ticket lets the
    manager check on commit that the round was not superseded meanwhile.
    """
    session_id: str
    round_number: int
    prompt: PromptItem
    entries: tuple[RoundEntry, ...]
