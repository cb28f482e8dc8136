"""
Session Module - The shared multiplayer session.

A session represents one game:
- Created when the first player joins
- Holds the roster, the current round and the round history
- Destroyed when the last player disconnects

Sessions are EPHEMERAL:
- No persistence to database
- Exactly one session exists at a time (single shared lobby)
"""

from .state import (
    SessionPhase,
    Submission,
    Player,
    RoundEntry,
    PlayerRoundOutcome,
    LeaderboardEntry,
    RoundResult,
    SealTicket,
)
from .roster import PlayerRoster
from .connections import Connection, ConnectionRegistry
from .manager import SessionManager, Session, LeaveOutcome

__all__ = [
    "SessionPhase",
    "Submission",
    "Player",
    "RoundEntry",
    "PlayerRoundOutcome",
    "LeaderboardEntry",
    "RoundResult",
    "SealTicket",
    "PlayerRoster",
    "Connection",
    "ConnectionRegistry",
    "SessionManager",
    "Session",
    "LeaveOutcome",
]
