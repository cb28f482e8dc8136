"""
HandParty - Multiplayer hand-shape party game coordinator.

Players photograph a hand gesture that answers a prompt and an AI judge
scores it. The coordinator provides:
- A single shared lobby with host semantics
- Round progression (lobby -> rounds -> game end)
- Sealed rounds with rankings and a cumulative leaderboard
- Privacy-filtered broadcasts over WebSocket
"""

__version__ = "0.1.0"
