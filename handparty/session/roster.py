"""
Player Roster - Insertion-ordered players with a single host.

Join order drives two rules:
- The first player to join becomes host
- When the host leaves, the earliest-joined remaining player takes over
"""

from __future__ import annotations
from typing import Iterator

from ..errors import UnknownPlayer
from .state import Player


class PlayerRoster:
    """Mapping of player id -> Player, in join order."""

    def __init__(self):
        self._players: dict[str, Player] = {}

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, player_id: object) -> bool:
        return player_id in self._players

    def __iter__(self) -> Iterator[Player]:
        return iter(list(self._players.values()))

    def players(self) -> list[Player]:
        return list(self._players.values())

    def get(self, player_id: str) -> Player | None:
        return self._players.get(player_id)

    def require(self, player_id: str) -> Player:
        """Get a player or raise UnknownPlayer."""
        player = self._players.get(player_id)
        if player is None:
            raise UnknownPlayer(f"Player {player_id} is not in the session")
        return player

    @property
    def host(self) -> Player | None:
        for player in self._players.values():
            if player.is_host:
                return player
        return None

    def add(self, player: Player) -> Player:
        """Add a player. The first player in an empty roster becomes host."""
        player.is_host = not self._players
        self._players[player.player_id] = player
        return player

    def remove(self, player_id: str) -> tuple[Player, Player | None]:
        """
        Remove a player.

        Returns:
            (removed player, new host if the host changed hands else None)
        """
        player = self.require(player_id)
        del self._players[player_id]

        new_host = None
        if player.is_host and self._players:
            new_host = next(iter(self._players.values()))
            new_host.is_host = True
        return player, new_host

    def submitted_count(self) -> int:
        return sum(1 for p in self._players.values() if p.has_selected)

    def all_submitted(self) -> bool:
        """True when at least one player exists and every player has submitted."""
        return bool(self._players) and self.submitted_count() == len(self._players)

    def clear_submissions(self) -> None:
        for player in self._players.values():
            player.submission = None
