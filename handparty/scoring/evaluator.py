"""
Score Sources - The external judge of a hand-shape photo.

A score source turns one player's submission for a prompt into
0-100 points plus a short feedback message.

Implementations:
- GeminiScoreSource: asks a Gemini vision model to grade the photo
- RandomScoreSource: synthetic scores for play without an AI key
- FixedScoreSource: scripted scores for tests and demos

A source signals failure by raising ScoringUnavailable with a player-facing
message (or any other exception); the RoundScorer turns that into a
zero-point fallback.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, TYPE_CHECKING
import base64
import binascii
import json
import logging
import random
import re

from google import genai
from google.genai import types

from ..config import CoordinatorConfig
from ..errors import ScoringUnavailable
from ..prompts.catalog import PromptItem

if TYPE_CHECKING:
    from ..session.state import RoundEntry

logger = logging.getLogger(__name__)

FALLBACK_FEEDBACK = "AIとの通信でエラーが発生しました。時間をおいてもう一度試してみてね。"
NO_IMAGE_FEEDBACK = "写真が届かなかったよ。もう一度試してみてね！"
UNREADABLE_FEEDBACK = "AIからの評価をうまく読み取れませんでした。もう一度試してみてね！"
EMPTY_REPLY_FEEDBACK = "AIから評価をもらえませんでした。もう一度試してみてね！"
MISSING_KEY_FEEDBACK = "APIキーが設定されていません。ゲームをプレイするには設定が必要です。"

_FENCE_RE = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)
_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.*)$", re.DOTALL)


@dataclass(frozen=True)
class ScoreData:
    """Points in [0, 100] and a feedback message."""
    points: int
    feedback: str

    def __post_init__(self):
        if not 0 <= self.points <= 100:
            raise ValueError(f"points must be within 0..100, got {self.points}")

    @classmethod
    def fallback(cls, feedback: str = FALLBACK_FEEDBACK) -> ScoreData:
        """The defined result when scoring is unavailable."""
        return cls(points=0, feedback=feedback)


class ScoreSource(ABC):
    """Abstract base class for score sources."""

    @abstractmethod
    async def evaluate(self, entry: RoundEntry, prompt: PromptItem) -> ScoreData:
        """Score one player's submission for the prompt."""
        pass


# =============================================================================
# Gemini
# =============================================================================

def build_instruction(prompt: PromptItem) -> str:
    """The grading instruction sent alongside the photo."""
    return (
        f'The user was asked to create a "{prompt.object_to_make_en}" '
        f'(in Japanese: "{prompt.object_to_make}") using one hand showing '
        f'"{prompt.shape1.value}" and the other hand showing "{prompt.shape2.value}".\n'
        "Evaluate the image based on these criteria:\n"
        f'1. Are the hand shapes for "{prompt.shape1.value}" and "{prompt.shape2.value}" '
        "clearly visible and correct?\n"
        f'2. Does the combination of these hand shapes resemble a "{prompt.object_to_make_en}"?\n'
        "Provide a score from 0 to 100, where 100 is a perfect and creative representation.\n"
        "Also provide a short, encouraging, and fun feedback message in Japanese, "
        "suitable for a child.\n"
        'Return your response ONLY as a JSON object with keys "points" (number, integer) '
        'and "feedback" (string).'
    )


def parse_score_reply(text: str | None) -> ScoreData:
    """
    Parse the model's JSON reply, tolerating a markdown code fence.

    Points are rounded and clamped to 0..100.

    Raises:
        ScoringUnavailable: empty or malformed reply
    """
    reply = (text or "").strip()
    if not reply:
        raise ScoringUnavailable(EMPTY_REPLY_FEEDBACK)

    match = _FENCE_RE.match(reply)
    if match and match.group(2):
        reply = match.group(2).strip()

    try:
        data = json.loads(reply)
    except json.JSONDecodeError as e:
        raise ScoringUnavailable(UNREADABLE_FEEDBACK) from e

    points = data.get("points") if isinstance(data, dict) else None
    feedback = data.get("feedback") if isinstance(data, dict) else None
    if isinstance(points, bool) or not isinstance(points, (int, float)) or not isinstance(feedback, str):
        raise ScoringUnavailable(UNREADABLE_FEEDBACK)

    return ScoreData(points=max(0, min(100, round(points))), feedback=feedback)


def decode_image(image: str) -> tuple[bytes, str]:
    """
    Decode a data URL (or bare base64 JPEG) into (bytes, mime type).

    Raises:
        ScoringUnavailable: payload is not valid base64
    """
    mime_type = "image/jpeg"
    payload = image
    match = _DATA_URL_RE.match(image)
    if match:
        mime_type = match.group("mime")
        payload = match.group("data")
    try:
        return base64.b64decode(payload, validate=True), mime_type
    except (binascii.Error, ValueError) as e:
        raise ScoringUnavailable(NO_IMAGE_FEEDBACK) from e


class GeminiScoreSource(ScoreSource):
    """
    Grades photos with a Gemini vision model.

    Usage:
        source = GeminiScoreSource(api_key=os.environ["GEMINI_API_KEY"])
        score = await source.evaluate(entry, prompt)
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gemini-2.5-flash",
        client: Any = None,
        temperature: float = 0.7,
    ):
        if client is None and api_key:
            client = genai.Client(api_key=api_key)
        self._client = client
        self.model = model
        self.temperature = temperature

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def evaluate(self, entry: RoundEntry, prompt: PromptItem) -> ScoreData:
        if self._client is None:
            raise ScoringUnavailable(MISSING_KEY_FEEDBACK)
        if not entry.submission.image:
            raise ScoringUnavailable(NO_IMAGE_FEEDBACK)

        image_bytes, mime_type = decode_image(entry.submission.image)
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                    build_instruction(prompt),
                ],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    temperature=self.temperature,
                ),
            )
        except Exception as e:
            raise ScoringUnavailable(_describe_api_error(e)) from e

        return parse_score_reply(response.text)


def _describe_api_error(error: Exception) -> str:
    message = str(error)
    if "API key not valid" in message:
        return "APIキーが無効です。正しいAPIキーを設定してください。"
    if "quota" in message.lower():
        return "APIの利用上限に達したようです。時間をおいて試してください。"
    return FALLBACK_FEEDBACK


# =============================================================================
# Synthetic sources
# =============================================================================

class RandomScoreSource(ScoreSource):
    """Uniformly random scores, for play without an AI judge."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    async def evaluate(self, entry: RoundEntry, prompt: PromptItem) -> ScoreData:
        points = self._rng.randint(0, 100)
        return ScoreData(points=points, feedback=f"{prompt.object_to_make}: {points}点！")


class FixedScoreSource(ScoreSource):
    """
    Scripted scores keyed by player id.

    Players listed in `failing` raise ScoringUnavailable, which lets
    tests exercise the fallback path.
    """

    def __init__(
        self,
        scores: Mapping[str, int] | None = None,
        default: int = 0,
        failing: set[str] | None = None,
    ):
        self.scores = dict(scores or {})
        self.default = default
        self.failing = set(failing or ())
        self.calls: list[tuple[str, str]] = []

    async def evaluate(self, entry: RoundEntry, prompt: PromptItem) -> ScoreData:
        self.calls.append((entry.player_id, prompt.id))
        if entry.player_id in self.failing:
            raise ScoringUnavailable(f"Scripted failure for {entry.player_id}")
        points = self.scores.get(entry.player_id, self.default)
        return ScoreData(points=points, feedback=f"{entry.player_name}: {points}")


def build_score_source(config: CoordinatorConfig, rng: random.Random | None = None) -> ScoreSource:
    """Pick the score source named by the configuration."""
    if config.scoring_mode == "gemini":
        if not config.gemini_api_key:
            logger.warning("HANDPARTY_SCORING=gemini but GEMINI_API_KEY is not set; every score will fall back to 0")
        return GeminiScoreSource(api_key=config.gemini_api_key, model=config.gemini_model)
    return RandomScoreSource(rng=rng)
