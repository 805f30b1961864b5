"""Lookups over the players and spectators known to a game state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .common import Team, entity_id_from_handle


def _never_source2() -> bool:
    return False


@dataclass
class Participants:
    """Helpers on top of the live player maps of a game state.

    The maps are held by reference, so the helpers always reflect the
    current state; every method returns a fresh snapshot.
    """

    players_by_user_id: Dict[int, Any] = field(default_factory=dict)
    players_by_entity_id: Dict[int, Any] = field(default_factory=dict)
    is_source2: Callable[[], bool] = _never_source2

    def by_user_id(self) -> Dict[int, Any]:
        """Connected players (with a live entity) keyed by user-ID."""
        return {
            uid: player
            for uid, player in self.players_by_user_id.items()
            if player.is_connected and player.entity is not None
        }

    def by_entity_id(self) -> Dict[int, Any]:
        """All players keyed by entity-ID."""
        return dict(self.players_by_entity_id)

    def all_by_user_id(self) -> Dict[int, Any]:
        """All known players, including disconnected ones, keyed by user-ID."""
        return dict(self.players_by_user_id)

    def all(self) -> List[Any]:
        """All known players and spectators, including disconnected ones."""
        return list(self.players_by_user_id.values())

    def connected(self) -> List[Any]:
        """All currently connected players and spectators."""
        return list(self.by_user_id().values())

    def playing(self) -> List[Any]:
        """Connected players that are neither spectating nor unassigned."""
        return [
            player
            for player in self.by_user_id().values()
            if player.team not in (Team.SPECTATORS, Team.UNASSIGNED)
        ]

    def team_members(self, team: Team) -> List[Any]:
        """Connected players belonging to ``team``."""
        return [player for player in self.by_user_id().values() if player.team == team]

    def find_by_pawn_handle(self, handle: int) -> Optional[Any]:
        """Find a player by the handle of their pawn entity (Source 2 only)."""
        entity_id = entity_id_from_handle(handle, self.is_source2())
        for player in self.all():
            pawn = player.pawn_entity
            if pawn is not None and pawn.id == entity_id:
                return player
        return None

    def find_by_handle64(self, handle: int) -> Optional[Any]:
        """Find a player by entity handle; None if unknown or invalid."""
        return self.players_by_entity_id.get(
            entity_id_from_handle(handle, self.is_source2())
        )

    def find_by_handle(self, handle: int) -> Optional[Any]:
        """Find a player by a signed entity handle."""
        return self.find_by_handle64(handle)

    def spotters_of(self, spotted: Any) -> List[Any]:
        """Players who have spotted ``spotted``."""
        return [
            other
            for other in self.players_by_user_id.values()
            if spotted.is_spotted_by(other)
        ]

    def spotted_by(self, spotter: Any) -> List[Any]:
        """Players with a live entity that ``spotter`` has spotted."""
        return [
            other
            for other in self.players_by_user_id.values()
            if other.entity is not None and other.is_spotted_by(spotter)
        ]