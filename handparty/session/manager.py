"""
Session Manager - The single shared session and its state machine.

LIFECYCLE:
1. First join creates the session (WaitingForPlayers, round 1)
2. Host starts the game -> Playing, round 1, first prompt
3. Players submit hand shapes; the last outstanding submission seals
   the round -> scoring -> RoundEnd with ranked results
4. Host advances -> Playing with the next round and a fresh prompt,
   or GameEnd once the final round has been played
5. Last player leaves -> session destroyed; the next join starts over

PHASES:
    WaitingForPlayers --start--> Playing --seal--> RoundEnd
    RoundEnd --advance--> Playing          (current_round < total_rounds)
    RoundEnd --advance--> GameEnd          (current_round >= total_rounds)

The manager is synchronous and not thread-safe. Callers serialize every
call behind one lock (see api.service.CoordinatorService). Sealing is a
two-step protocol so that slow scoring runs outside that lock:

    ticket = manager.submit(...)          # seal condition met
    scores = await scorer.evaluate(...)   # no lock held
    result = manager.commit_seal(ticket, scores)   # revalidated
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Mapping, Sequence, TYPE_CHECKING
import itertools
import logging
import random
import time
import uuid

from ..errors import (
    CapacityExceeded,
    InvalidPhase,
    MalformedMessage,
    NotAuthorized,
    UnknownPlayer,
)
from ..prompts.catalog import DEFAULT_PROMPTS, HandShape, PromptItem
from ..prompts.selector import PromptSelector
from .roster import PlayerRoster
from .state import (
    LeaderboardEntry,
    Player,
    RoundEntry,
    RoundResult,
    SealTicket,
    SessionPhase,
    Submission,
)

if TYPE_CHECKING:
    from ..scoring.evaluator import ScoreData

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """
    The one in-progress or forming game.

    Owns its roster, its prompt selector (so the no-repeat policy is
    scoped to the session) and its round history.
    """
    session_id: str
    prompts: PromptSelector
    total_rounds: int
    created_at: float = field(default_factory=time.time)

    roster: PlayerRoster = field(default_factory=PlayerRoster)
    phase: SessionPhase = SessionPhase.WAITING_FOR_PLAYERS
    current_round: int = 1
    current_prompt: PromptItem | None = None
    history: list[RoundResult] = field(default_factory=list)
    final_leaderboard: tuple[LeaderboardEntry, ...] | None = None

    # Set between the seal decision and commit_seal()
    pending_seal: SealTicket | None = None

    @property
    def host_id(self) -> str | None:
        host = self.roster.host
        return host.player_id if host else None

    @property
    def players(self) -> list[Player]:
        return self.roster.players()

    def is_host(self, player_id: str) -> bool:
        return self.host_id == player_id


@dataclass(frozen=True)
class LeaveOutcome:
    """What happened when a player left."""
    player: Player
    new_host: Player | None = None
    session_closed: bool = False
    seal: SealTicket | None = None


class SessionManager:
    """
    Owns the single shared session and applies every transition.

    Usage:
        manager = SessionManager(total_rounds=3)
        host = manager.join("Aki")
        manager.start(host.player_id)
        ticket = manager.submit(host.player_id, HandShape.GUU)
    """

    def __init__(
        self,
        catalog: Sequence[PromptItem] = DEFAULT_PROMPTS,
        total_rounds: int = 3,
        max_players: int = 8,
        rng: random.Random | None = None,
    ):
        self.catalog = tuple(catalog)
        self.total_rounds = total_rounds
        self.max_players = max_players
        self._rng = rng or random.Random()
        self._session: Session | None = None
        self._submission_seq = itertools.count(1)

    @property
    def session(self) -> Session | None:
        """The live session, or None when nobody is connected."""
        return self._session

    def require_session(self) -> Session:
        if self._session is None:
            raise UnknownPlayer("No active session")
        return self._session

    # =========================================================================
    # Transitions
    # =========================================================================

    def join(self, name: str) -> Player:
        """
        Add a player, creating the session if none exists.

        The first player in the roster becomes host. Allowed in any phase.

        Raises:
            MalformedMessage: empty display name
            CapacityExceeded: roster is full
        """
        name = name.strip()
        if not name:
            raise MalformedMessage("Player name must not be empty")

        session = self._session
        if session is not None and len(session.roster) >= self.max_players:
            raise CapacityExceeded(f"Session is full ({self.max_players} players)")

        if session is None:
            session = self._create_session()

        player = session.roster.add(
            Player(player_id=f"player_{uuid.uuid4().hex[:12]}", name=name)
        )
        logger.info(
            "Player %s (%s) joined session %s%s",
            player.player_id, player.name, session.session_id,
            " as host" if player.is_host else "",
        )
        return player

    def start(self, player_id: str) -> Session:
        """
        Start the game: round 1, first prompt, submissions cleared.

        Raises:
            UnknownPlayer: sender is not in the session
            InvalidPhase: not in WaitingForPlayers
            NotAuthorized: sender is not the host
        """
        session = self._require_member(player_id)
        if session.phase is not SessionPhase.WAITING_FOR_PLAYERS:
            raise InvalidPhase(f"Cannot start a game in phase {session.phase.value}")
        if not session.is_host(player_id):
            raise NotAuthorized("Only the host can start the game")

        session.current_round = 1
        self._begin_round(session)
        logger.info("Session %s started (%d rounds)", session.session_id, session.total_rounds)
        return session

    def submit(
        self,
        player_id: str,
        hand_shape: HandShape,
        session_id: str | None = None,
        image: str | None = None,
    ) -> SealTicket | None:
        """
        Record a hand-shape submission for the open round.

        Resubmitting before the seal overwrites the earlier choice.

        Returns:
            A SealTicket if this submission completed the round, else None

        Raises:
            UnknownPlayer: sender or session_id is not live
            InvalidPhase: round is not open (including a round already sealed)
        """
        session = self._require_member(player_id)
        if session_id is not None and session_id != session.session_id:
            raise UnknownPlayer(f"Session {session_id} is not active")
        if session.phase is not SessionPhase.PLAYING or session.pending_seal is not None:
            raise InvalidPhase(f"Round {session.current_round} is not accepting submissions")

        player = session.roster.require(player_id)
        player.submission = Submission(
            hand_shape=hand_shape,
            order=next(self._submission_seq),
            image=image,
        )
        logger.info(
            "Player %s submitted for round %d (%d/%d)",
            player_id, session.current_round,
            session.roster.submitted_count(), len(session.roster),
        )
        return self._check_seal(session)

    def commit_seal(self, ticket: SealTicket, scores: Mapping[str, ScoreData]) -> RoundResult | None:
        """
        Commit a sealed round once its scores are known.

        Returns None, committing nothing, when the ticket was superseded
        (session destroyed, or a different round is pending). A ticket
        commits at most once, so a round never gets two results.
        """
        from ..scoring.scorer import settle_round

        session = self._session
        if (
            session is None
            or session.session_id != ticket.session_id
            or session.pending_seal is not ticket
        ):
            logger.info("Discarding stale seal for round %d", ticket.round_number)
            return None

        # Players who left while scoring ran are dropped from the result
        entries = [e for e in ticket.entries if e.player_id in session.roster]
        result = settle_round(
            round_number=ticket.round_number,
            prompt=ticket.prompt,
            entries=entries,
            scores=scores,
            players=session.players,
        )
        session.history.append(result)
        session.pending_seal = None
        session.phase = SessionPhase.ROUND_END
        logger.info("Round %d sealed in session %s", ticket.round_number, session.session_id)
        return result

    def advance(self, player_id: str) -> Session:
        """
        Move past RoundEnd: next round, or GameEnd after the final round.

        Raises:
            UnknownPlayer: sender is not in the session
            InvalidPhase: not in RoundEnd
            NotAuthorized: sender is not the host
        """
        from ..scoring.ranking import build_leaderboard

        session = self._require_member(player_id)
        if session.phase is not SessionPhase.ROUND_END:
            raise InvalidPhase(f"Cannot advance in phase {session.phase.value}")
        if not session.is_host(player_id):
            raise NotAuthorized("Only the host can advance to the next round")

        if session.current_round >= session.total_rounds:
            session.phase = SessionPhase.GAME_END
            session.current_prompt = None
            session.final_leaderboard = build_leaderboard(session.players)
            logger.info("Session %s finished after %d rounds", session.session_id, session.current_round)
        else:
            session.current_round += 1
            self._begin_round(session)
            logger.info("Session %s advanced to round %d", session.session_id, session.current_round)
        return session

    def leave(self, player_id: str) -> LeaveOutcome | None:
        """
        Remove a player (connection lost).

        Reassigns host to the earliest-joined remaining player, destroys
        the session when the roster empties, and re-checks the seal
        condition when a round is open.

        Returns None if the player was not in the session.
        """
        session = self._session
        if session is None or player_id not in session.roster:
            return None

        player, new_host = session.roster.remove(player_id)
        logger.info("Player %s left session %s", player_id, session.session_id)

        if not session.roster:
            logger.info("Session %s closed: no players left", session.session_id)
            self._session = None
            return LeaveOutcome(player=player, session_closed=True)

        if new_host:
            logger.info("Host passed to %s", new_host.player_id)

        return LeaveOutcome(player=player, new_host=new_host, seal=self._check_seal(session))

    # =========================================================================
    # Internals
    # =========================================================================

    def _create_session(self) -> Session:
        session = Session(
            session_id=f"session_{uuid.uuid4().hex[:12]}",
            prompts=PromptSelector(self.catalog, rng=self._rng),
            total_rounds=self.total_rounds,
        )
        self._session = session
        logger.info("Created session %s", session.session_id)
        return session

    def _require_member(self, player_id: str) -> Session:
        session = self.require_session()
        session.roster.require(player_id)
        return session

    def _begin_round(self, session: Session) -> None:
        session.roster.clear_submissions()
        session.pending_seal = None
        session.current_prompt = session.prompts.next()
        session.phase = SessionPhase.PLAYING

    def _check_seal(self, session: Session) -> SealTicket | None:
        """Issue a SealTicket if every live player has submitted."""
        if session.phase is not SessionPhase.PLAYING or session.pending_seal is not None:
            return None
        if not session.roster.all_submitted():
            return None

        players = sorted(session.players, key=lambda p: p.submission.order)
        ticket = SealTicket(
            session_id=session.session_id,
            round_number=session.current_round,
            prompt=session.current_prompt,
            entries=tuple(
                RoundEntry(player_id=p.player_id, player_name=p.name, submission=p.submission)
                for p in players
            ),
        )
        session.pending_seal = ticket
        return ticket
