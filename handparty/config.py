"""
Coordinator configuration.

All settings come from the environment so the server can be configured
the same way in development and in a container:

    HANDPARTY_TOTAL_ROUNDS     rounds per game (default 3)
    HANDPARTY_MAX_PLAYERS      roster cap (default 8)
    HANDPARTY_SCORING          "random" or "gemini" (default "random")
    GEMINI_API_KEY             key for the Gemini score source
    HANDPARTY_GEMINI_MODEL     model name (default "gemini-2.5-flash")
    HANDPARTY_SCORING_TIMEOUT  seconds per evaluation (default 20)
    HANDPARTY_PROMPTS_FILE     optional JSON prompt catalog
    HANDPARTY_LOG_LEVEL        log level (default INFO)
    ALLOWED_ORIGINS            comma separated CORS origins (default *)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Mapping
import logging
import os

from .errors import ConfigError

SCORING_MODES = ("random", "gemini")

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


@dataclass
class CoordinatorConfig:
    """Runtime settings for one coordinator process."""
    total_rounds: int = 3
    max_players: int = 8
    scoring_mode: str = "random"
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    scoring_timeout: float = 20.0
    prompts_file: str | None = None
    log_level: str = "INFO"
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    def __post_init__(self):
        if self.total_rounds < 1:
            raise ConfigError(f"total_rounds must be >= 1, got {self.total_rounds}")
        if self.max_players < 1:
            raise ConfigError(f"max_players must be >= 1, got {self.max_players}")
        if self.scoring_timeout <= 0:
            raise ConfigError(f"scoring_timeout must be > 0, got {self.scoring_timeout}")
        if self.scoring_mode not in SCORING_MODES:
            raise ConfigError(
                f"scoring_mode must be one of {', '.join(SCORING_MODES)}, got {self.scoring_mode!r}"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> CoordinatorConfig:
        """Build a config from environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            total_rounds=_int(env, "HANDPARTY_TOTAL_ROUNDS", 3),
            max_players=_int(env, "HANDPARTY_MAX_PLAYERS", 8),
            scoring_mode=env.get("HANDPARTY_SCORING", "random").strip().lower(),
            gemini_api_key=env.get("GEMINI_API_KEY") or None,
            gemini_model=env.get("HANDPARTY_GEMINI_MODEL", "gemini-2.5-flash"),
            scoring_timeout=_float(env, "HANDPARTY_SCORING_TIMEOUT", 20.0),
            prompts_file=env.get("HANDPARTY_PROMPTS_FILE") or None,
            log_level=env.get("HANDPARTY_LOG_LEVEL", "INFO").upper(),
            allowed_origins=[
                origin.strip()
                for origin in env.get("ALLOWED_ORIGINS", "*").split(",")
                if origin.strip()
            ],
        )


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def configure_logging(level: str = "INFO") -> None:
    """Install a single timestamped stream handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(level)
    if not any(getattr(h, "_handparty", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._handparty = True  # type: ignore[attr-defined]
        root.addHandler(handler)
