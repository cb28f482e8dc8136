"""
Pytest fixtures for HandParty tests.
"""

import asyncio
import random

import pytest

from ..api.service import CoordinatorService
from ..config import CoordinatorConfig
from ..prompts.catalog import DEFAULT_PROMPTS, HandShape
from ..scoring.evaluator import FixedScoreSource
from ..session.manager import SessionManager
from ..session.state import RoundEntry, Submission


class DummyWebSocket:
    """
    Records every payload sent to it. Can be told to fail sends, or to
    stall on the first payload of a given type (a slow network).
    """

    def __init__(self, fail: bool = False, stall_on: str | None = None, stall: float = 0.05):
        self.sent: list[dict] = []
        self.fail = fail
        self.stall_on = stall_on
        self.stall = stall

    async def send_json(self, data: dict) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        if data["type"] == self.stall_on:
            self.stall_on = None
            await asyncio.sleep(self.stall)
        self.sent.append(data)

    def types(self) -> list[str]:
        return [m["type"] for m in self.sent]

    def last(self, message_type: str | None = None) -> dict:
        """Most recent payload, optionally of a given type."""
        for message in reversed(self.sent):
            if message_type is None or message["type"] == message_type:
                return message
        raise AssertionError(f"no {message_type or 'message'} sent; got {self.types()}")


def make_entry(player_id: str, name: str | None = None, shape=HandShape.GUU, order: int = 1, image=None) -> RoundEntry:
    """Build a sealed RoundEntry without going through a session."""
    return RoundEntry(
        player_id=player_id,
        player_name=name or player_id,
        submission=Submission(hand_shape=shape, order=order, image=image),
    )


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def manager(rng) -> SessionManager:
    """A 3-round manager over the built-in catalog."""
    return SessionManager(catalog=DEFAULT_PROMPTS, total_rounds=3, max_players=4, rng=rng)


@pytest.fixture
def score_source() -> FixedScoreSource:
    return FixedScoreSource(default=50)


@pytest.fixture
def service(score_source, rng) -> CoordinatorService:
    """A 2-round coordinator with scripted scores."""
    config = CoordinatorConfig(total_rounds=2, max_players=4)
    return CoordinatorService(config, score_source=score_source, rng=rng)
