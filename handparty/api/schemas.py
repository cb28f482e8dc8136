"""
Pydantic Schemas for the WebSocket protocol and the HTTP endpoints.

Every WebSocket message is a JSON object tagged by `type`. Inbound
messages form a discriminated union, so an unknown `type` is a normal
validation failure rather than a crash. All keys are camelCase on the
wire.

Client -> server:
    joinGame{playerName}
    startGame{}
    selectHandShape{sessionId, playerId, handShape, image?}
    nextRound{}
    ping{}

Server -> client:
    playerJoined{player, isHost, playerId, session}   joining connection only
    newPlayerJoined{newPlayer, session}               everyone else
    gameStart{session}
    gameUpdate{session}
    roundEnd{session}
    nextRound{session}
    gameEnd{session}
    playerLeft{playerId, session}
    error{message, code}
    pong{}
"""

from __future__ import annotations
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from ..errors import ErrorCode, MalformedMessage
from ..prompts.catalog import HandShape
from ..session.state import SessionPhase

NAME_MAX_LEN = 24
IMAGE_MAX_LEN = 8 * 1024 * 1024  # ~6 MB of JPEG once base64 encoded


class WireModel(BaseModel):
    """Base for every wire model: camelCase aliases, snake_case attributes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialize for sending. None-valued optional fields are omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# Inbound (client -> server)
# =============================================================================

PlayerName = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=NAME_MAX_LEN),
]


class JoinGame(WireModel):
    type: Literal["joinGame"]
    player_name: PlayerName


class StartGame(WireModel):
    type: Literal["startGame"]


class SelectHandShape(WireModel):
    type: Literal["selectHandShape"]
    session_id: str
    player_id: str
    hand_shape: HandShape
    image: Optional[str] = Field(None, max_length=IMAGE_MAX_LEN, description="Captured photo as a data URL")


class NextRound(WireModel):
    type: Literal["nextRound"]


class Ping(WireModel):
    type: Literal["ping"]


InboundMessage = Annotated[
    Union[JoinGame, StartGame, SelectHandShape, NextRound, Ping],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


def decode_message(raw: str | bytes) -> InboundMessage:
    """
    Decode one inbound frame.

    Raises:
        MalformedMessage: invalid JSON, missing or unknown `type`, bad fields
    """
    try:
        return _inbound_adapter.validate_json(raw)
    except ValidationError as e:
        raise MalformedMessage(_describe_validation_error(e)) from None


def _describe_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    kind = first.get("type")
    if kind == "json_invalid":
        return "Invalid message format"
    if kind == "union_tag_invalid":
        tag = first.get("ctx", {}).get("tag")
        return f"Unknown message type: {tag}"
    if kind in ("union_tag_not_found", "model_attributes_type"):
        return "Message must be an object with a 'type' field"
    location = ".".join(str(part) for part in first.get("loc", ())[1:])
    return f"Invalid field {location}: {first.get('msg')}" if location else str(first.get("msg"))


# =============================================================================
# Session views (server -> client payloads)
# =============================================================================

class PlayerView(WireModel):
    """A roster entry. `hand_shape` is only ever set on the viewer's own entry."""
    id: str
    name: str
    score: int
    is_host: bool
    has_selected: bool = False
    hand_shape: Optional[HandShape] = None


class PromptView(WireModel):
    id: str
    shape1: HandShape
    shape2: HandShape
    object_to_make: str
    object_to_make_en: str
    full_text: str


class PlayerResultView(WireModel):
    player_id: str
    player_name: str
    hand_shape: HandShape
    score: int
    feedback: str
    rank: int


class LeaderboardView(WireModel):
    player_id: str
    player_name: str
    total_score: int
    rank: int


class RoundResultView(WireModel):
    round_number: int = Field(..., alias="round")
    prompt: PromptView
    player_results: list[PlayerResultView] = Field(default_factory=list)
    leaderboard: list[LeaderboardView] = Field(default_factory=list)


class SessionView(WireModel):
    id: str
    players: list[PlayerView] = Field(default_factory=list)
    state: SessionPhase
    current_round: int
    total_rounds: int
    current_prompt: Optional[PromptView] = None
    round_results: list[RoundResultView] = Field(default_factory=list)
    player_scores: dict[str, int] = Field(default_factory=dict)
    host_id: Optional[str] = None
    final_leaderboard: Optional[list[LeaderboardView]] = None


# =============================================================================
# Outbound (server -> client)
# =============================================================================

class PlayerJoined(WireModel):
    type: Literal["playerJoined"] = "playerJoined"
    player: PlayerView
    is_host: bool
    player_id: str
    session: SessionView


class NewPlayerJoined(WireModel):
    type: Literal["newPlayerJoined"] = "newPlayerJoined"
    new_player: PlayerView
    session: SessionView


class GameStart(WireModel):
    type: Literal["gameStart"] = "gameStart"
    session: SessionView


class GameUpdate(WireModel):
    type: Literal["gameUpdate"] = "gameUpdate"
    session: SessionView


class RoundEnd(WireModel):
    type: Literal["roundEnd"] = "roundEnd"
    session: SessionView


class NextRoundStarted(WireModel):
    type: Literal["nextRound"] = "nextRound"
    session: SessionView


class GameEnd(WireModel):
    type: Literal["gameEnd"] = "gameEnd"
    session: SessionView


class PlayerLeft(WireModel):
    type: Literal["playerLeft"] = "playerLeft"
    player_id: str
    session: SessionView


class ErrorMessage(WireModel):
    type: Literal["error"] = "error"
    message: str
    code: Optional[ErrorCode] = None


class Pong(WireModel):
    type: Literal["pong"] = "pong"


# =============================================================================
# HTTP
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard HTTP error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    api_version: str = Field("v1", description="API version")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    connections: int = 0
    idle_connections: int = Field(0, description="Connections silent for longer than the idle window")
    session_active: bool = False
