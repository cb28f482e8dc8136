"""
Coordinator Service - Connection handling around the session manager.

The service:
1. Registers transport connections
2. Decodes inbound frames and dispatches them by message type
3. Applies transitions through the SessionManager under a single lock
4. Projects the resulting state and hands it to the BroadcastGateway
5. Answers every recoverable error to the sender only

Single-writer rule: every read-modify-write of session state happens
inside `async with self._lock`. Payloads are built under the lock and
sent after it is released. Scoring a sealed round runs without the lock
and is committed under it with revalidation (SealTicket).

This layer is framework-agnostic: a connection handle only needs an
async `send_json(dict)` method.
"""

from __future__ import annotations
from typing import Any, Awaitable, Callable
import asyncio
import logging
import random

from ..config import CoordinatorConfig
from ..errors import AlreadyJoined, GameError, MalformedMessage, NotAuthorized, UnknownPlayer
from ..prompts.catalog import DEFAULT_PROMPTS, PromptItem, load_catalog
from ..scoring.evaluator import ScoreSource, build_score_source
from ..scoring.scorer import RoundScorer
from ..session.connections import Connection, ConnectionRegistry
from ..session.manager import Session, SessionManager
from ..session.state import SealTicket, SessionPhase
from .gateway import BroadcastGateway, Delivery
from .projections import project_player, project_session
from .schemas import (
    ErrorMessage,
    GameEnd,
    GameStart,
    GameUpdate,
    JoinGame,
    NewPlayerJoined,
    NextRound,
    NextRoundStarted,
    Ping,
    PlayerJoined,
    PlayerLeft,
    Pong,
    RoundEnd,
    SelectHandShape,
    StartGame,
    WireModel,
    decode_message,
)

logger = logging.getLogger(__name__)


class CoordinatorService:
    """
    The multiplayer session coordinator.

    Usage:
        service = CoordinatorService(CoordinatorConfig.from_env())

        connection_id = await service.connect(websocket)
        await service.handle_raw(connection_id, frame)
        ...
        await service.disconnect(connection_id)
    """

    def __init__(
        self,
        config: CoordinatorConfig | None = None,
        score_source: ScoreSource | None = None,
        catalog: tuple[PromptItem, ...] | None = None,
        rng: random.Random | None = None,
    ):
        self.config = config or CoordinatorConfig()
        if catalog is None:
            catalog = load_catalog(self.config.prompts_file) if self.config.prompts_file else DEFAULT_PROMPTS

        self.registry = ConnectionRegistry()
        self.gateway = BroadcastGateway(self.registry)
        self.manager = SessionManager(
            catalog=catalog,
            total_rounds=self.config.total_rounds,
            max_players=self.config.max_players,
            rng=rng,
        )
        self.scorer = RoundScorer(
            score_source or build_score_source(self.config, rng=rng),
            timeout=self.config.scoring_timeout,
        )
        self._lock = asyncio.Lock()
        self._handlers: dict[type, Callable[[str, Any], Awaitable[None]]] = {
            JoinGame: self._on_join,
            StartGame: self._on_start,
            SelectHandShape: self._on_select,
            NextRound: self._on_next_round,
            Ping: self._on_ping,
        }

    # =========================================================================
    # Transport entry points
    # =========================================================================

    async def connect(self, handle: Any) -> str:
        """Register a new connection. Returns its connection id."""
        async with self._lock:
            connection = self.registry.register(handle)
        logger.info("Connection %s opened", connection.connection_id)
        return connection.connection_id

    async def handle_raw(self, connection_id: str, raw: str | bytes) -> None:
        """Decode and apply one inbound frame. Errors go back to the sender."""
        self.registry.touch(connection_id)
        try:
            message = decode_message(raw)
            handler = self._handlers.get(type(message))
            if handler is None:
                raise MalformedMessage(f"Unsupported message type: {message.type}")
            await handler(connection_id, message)
        except GameError as e:
            logger.warning("Rejected message from %s: [%s] %s", connection_id, e.code.value, e.message)
            await self.gateway.send_to(connection_id, ErrorMessage(message=e.message, code=e.code))

    async def disconnect(self, connection_id: str) -> None:
        """Connection lost: remove the player and notify everyone else."""
        async with self._lock:
            connection = self.registry.unregister(connection_id)
            if connection is None:
                return
            logger.info("Connection %s closed", connection_id)
            if connection.player_id is None:
                return
            outcome = self.manager.leave(connection.player_id)
            if outcome is None or outcome.session_closed:
                return
            session = self.manager.session
            deliveries = self.gateway.plan(
                lambda c: PlayerLeft(
                    player_id=outcome.player.player_id,
                    session=project_session(session, c.player_id),
                )
            )
        await self.gateway.deliver(deliveries)
        if outcome.seal is not None:
            await self._seal(outcome.seal)

    # =========================================================================
    # Message handlers
    # =========================================================================

    async def _on_join(self, connection_id: str, message: JoinGame) -> None:
        async with self._lock:
            connection = self._require_connection(connection_id)
            if connection.player_id is not None:
                raise AlreadyJoined("This connection has already joined the game")

            player = self.manager.join(message.player_name)
            self.registry.bind(connection_id, player.player_id)
            session = self.manager.session

            deliveries = self.gateway.plan_to(
                connection_id,
                PlayerJoined(
                    player=project_player(player, player.player_id),
                    is_host=player.is_host,
                    player_id=player.player_id,
                    session=project_session(session, player.player_id),
                ),
            )
            deliveries += self.gateway.plan(
                lambda c: NewPlayerJoined(
                    new_player=project_player(player),
                    session=project_session(session, c.player_id),
                ),
                exclude={connection_id},
            )
        await self.gateway.deliver(deliveries)

    async def _on_start(self, connection_id: str, message: StartGame) -> None:
        async with self._lock:
            session = self.manager.start(self._require_player(connection_id))
            deliveries = self._plan_session_broadcast(
                lambda view: GameStart(session=view), session
            )
        await self.gateway.deliver(deliveries)

    async def _on_select(self, connection_id: str, message: SelectHandShape) -> None:
        async with self._lock:
            player_id = self._require_player(connection_id)
            if message.player_id != player_id:
                raise NotAuthorized("Cannot submit a hand shape for another player")
            ticket = self.manager.submit(
                player_id,
                message.hand_shape,
                session_id=message.session_id,
                image=message.image,
            )
            deliveries = []
            if ticket is None:
                deliveries = self._plan_session_broadcast(
                    lambda view: GameUpdate(session=view), self.manager.session
                )
        await self.gateway.deliver(deliveries)
        if ticket is not None:
            await self._seal(ticket)

    async def _on_next_round(self, connection_id: str, message: NextRound) -> None:
        async with self._lock:
            session = self.manager.advance(self._require_player(connection_id))
            if session.phase is SessionPhase.GAME_END:
                deliveries = self._plan_session_broadcast(lambda view: GameEnd(session=view), session)
            else:
                deliveries = self._plan_session_broadcast(lambda view: NextRoundStarted(session=view), session)
        await self.gateway.deliver(deliveries)

    async def _on_ping(self, connection_id: str, message: Ping) -> None:
        await self.gateway.send_to(connection_id, Pong())

    # =========================================================================
    # Sealing
    # =========================================================================

    async def _seal(self, ticket: SealTicket) -> None:
        """Score a sealed round without the lock, then commit and announce it."""
        scores = await self.scorer.evaluate(ticket.entries, ticket.prompt)
        async with self._lock:
            result = self.manager.commit_seal(ticket, scores)
            if result is None:
                return
            deliveries = self._plan_session_broadcast(
                lambda view: RoundEnd(session=view), self.manager.session
            )
        await self.gateway.deliver(deliveries)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_connection(self, connection_id: str) -> Connection:
        connection = self.registry.get(connection_id)
        if connection is None:
            raise UnknownPlayer(f"Unknown connection {connection_id}")
        return connection

    def _require_player(self, connection_id: str) -> str:
        player_id = self._require_connection(connection_id).player_id
        if player_id is None:
            raise UnknownPlayer("Join the game first")
        return player_id

    def _plan_session_broadcast(
        self,
        wrap: Callable[[Any], WireModel],
        session: Session,
    ) -> list[Delivery]:
        """One session snapshot per connection, projected for its viewer."""
        return self.gateway.plan(lambda c: wrap(project_session(session, c.player_id)))
