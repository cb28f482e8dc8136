"""
Projections - Derive wire views from the canonical session.

The session object is never cloned or trimmed for sending. Each view is
built here from scratch, per recipient:

- Before a round seals, other players appear only with `hasSelected`;
  the viewer additionally sees their own `handShape`
- Sealed rounds (the history) are public in full
- Captured photos are never projected
"""

from __future__ import annotations
from typing import Iterable

from ..prompts.catalog import PromptItem
from ..session.manager import Session
from ..session.state import LeaderboardEntry, Player, RoundResult, SessionPhase
from .schemas import (
    LeaderboardView,
    PlayerResultView,
    PlayerView,
    PromptView,
    RoundResultView,
    SessionView,
)


def project_player(player: Player, viewer_id: str | None = None) -> PlayerView:
    """Roster entry; the hand shape is included only for the viewer themself."""
    own = viewer_id is not None and player.player_id == viewer_id
    return PlayerView(
        id=player.player_id,
        name=player.name,
        score=player.score,
        is_host=player.is_host,
        has_selected=player.has_selected,
        hand_shape=player.submission.hand_shape if own and player.submission else None,
    )


def project_prompt(prompt: PromptItem) -> PromptView:
    return PromptView(
        id=prompt.id,
        shape1=prompt.shape1,
        shape2=prompt.shape2,
        object_to_make=prompt.object_to_make,
        object_to_make_en=prompt.object_to_make_en,
        full_text=prompt.full_text,
    )


def project_leaderboard(entries: Iterable[LeaderboardEntry]) -> list[LeaderboardView]:
    return [
        LeaderboardView(
            player_id=e.player_id,
            player_name=e.player_name,
            total_score=e.total_score,
            rank=e.rank,
        )
        for e in entries
    ]


def project_round_result(result: RoundResult) -> RoundResultView:
    return RoundResultView(
        round_number=result.round_number,
        prompt=project_prompt(result.prompt),
        player_results=[
            PlayerResultView(
                player_id=o.player_id,
                player_name=o.player_name,
                hand_shape=o.hand_shape,
                score=o.score,
                feedback=o.feedback,
                rank=o.rank,
            )
            for o in result.outcomes
        ],
        leaderboard=project_leaderboard(result.leaderboard),
    )


def project_session(session: Session, viewer_id: str | None = None) -> SessionView:
    """
    Session snapshot for one recipient.

    Args:
        session: The canonical session
        viewer_id: Player id of the recipient (None for an unjoined connection)
    """
    show_prompt = session.phase in (SessionPhase.PLAYING, SessionPhase.ROUND_END)
    return SessionView(
        id=session.session_id,
        players=[project_player(p, viewer_id) for p in session.players],
        state=session.phase,
        current_round=session.current_round,
        total_rounds=session.total_rounds,
        current_prompt=project_prompt(session.current_prompt) if show_prompt and session.current_prompt else None,
        round_results=[project_round_result(r) for r in session.history],
        player_scores={p.player_id: p.score for p in session.players},
        host_id=session.host_id,
        final_leaderboard=(
            project_leaderboard(session.final_leaderboard)
            if session.final_leaderboard is not None else None
        ),
    )
