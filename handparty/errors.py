"""
Error taxonomy for the session coordinator.

Every GameError is recovered at the point of the offending message:
the sender receives an `error` message and session state is untouched.
CatalogError and ConfigError are raised at startup only.
"""

from __future__ import annotations
from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable error codes sent to clients."""
    MALFORMED_MESSAGE = "MALFORMED_MESSAGE"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    INVALID_PHASE = "INVALID_PHASE"
    UNKNOWN_PLAYER = "UNKNOWN_PLAYER"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    ALREADY_JOINED = "ALREADY_JOINED"
    SCORING_UNAVAILABLE = "SCORING_UNAVAILABLE"


class GameError(Exception):
    """Base class for recoverable, per-message errors."""
    code: ErrorCode = ErrorCode.MALFORMED_MESSAGE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedMessage(GameError):
    """Inbound message could not be decoded."""
    code = ErrorCode.MALFORMED_MESSAGE


class NotAuthorized(GameError):
    """Sender may not perform this action (host-only, or acting for someone else)."""
    code = ErrorCode.NOT_AUTHORIZED


class InvalidPhase(GameError):
    """Action is not valid in the session's current phase."""
    code = ErrorCode.INVALID_PHASE


class UnknownPlayer(GameError):
    """Action references a player or session that is not live."""
    code = ErrorCode.UNKNOWN_PLAYER


class CapacityExceeded(GameError):
    """Roster is full."""
    code = ErrorCode.CAPACITY_EXCEEDED


class AlreadyJoined(GameError):
    """Connection already has a player in the session."""
    code = ErrorCode.ALREADY_JOINED


class ScoringUnavailable(GameError):
    """The scoring collaborator failed; callers substitute a fallback score."""
    code = ErrorCode.SCORING_UNAVAILABLE


class CatalogError(ValueError):
    """Prompt catalog is empty or invalid."""


class ConfigError(ValueError):
    """Environment configuration is invalid."""
