"""
API Module - Client interface.

Exposes the coordinator over a WebSocket:
1. Clients join the shared session
2. The host starts the game and advances rounds
3. Players submit hand shapes (with their photo)
4. Everyone receives privacy-filtered session snapshots

All state is session-scoped. No user accounts; a player is identified
by an id generated when their connection joins.
"""

from .schemas import (
    # Inbound
    JoinGame,
    StartGame,
    SelectHandShape,
    NextRound,
    Ping,
    decode_message,
    # Views
    PlayerView,
    PromptView,
    RoundResultView,
    LeaderboardView,
    SessionView,
    # Outbound
    PlayerJoined,
    NewPlayerJoined,
    GameStart,
    GameUpdate,
    RoundEnd,
    NextRoundStarted,
    GameEnd,
    PlayerLeft,
    ErrorMessage,
    Pong,
)
from .gateway import BroadcastGateway, Delivery
from .service import CoordinatorService
from .app import create_app

__all__ = [
    # Inbound
    "JoinGame",
    "StartGame",
    "SelectHandShape",
    "NextRound",
    "Ping",
    "decode_message",
    # Views
    "PlayerView",
    "PromptView",
    "RoundResultView",
    "LeaderboardView",
    "SessionView",
    # Outbound
    "PlayerJoined",
    "NewPlayerJoined",
    "GameStart",
    "GameUpdate",
    "RoundEnd",
    "NextRoundStarted",
    "GameEnd",
    "PlayerLeft",
    "ErrorMessage",
    "Pong",
    # Service
    "BroadcastGateway",
    "Delivery",
    "CoordinatorService",
    "create_app",
]
