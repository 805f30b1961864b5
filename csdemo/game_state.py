"""The live state of a match: teams, players, entities and rules."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from .common import Team, entity_id_from_handle
from .game_rules import GameRules
from .participants import Participants


def _never_source2() -> bool:
    return False


class TeamState:
    """State of one side of the match.

    Members are looked up on demand, so they always reflect the current
    players of the team.
    """

    def __init__(
        self,
        team: Team,
        members_of: Callable[[Team], List[Any]],
        opponent: Optional["TeamState"] = None,
    ) -> None:
        self.team = team
        self._members_of = members_of
        self.opponent = opponent

    def members(self) -> List[Any]:
        """Players currently belonging to this team."""
        return self._members_of(self.team)

    def __repr__(self) -> str:
        return f"TeamState(team={self.team.name})"


class GameState:
    """All game-state relevant information of a demo being parsed."""

    def __init__(self, is_source2: Optional[Callable[[], bool]] = None) -> None:
        self._is_source2: Callable[[], bool] = is_source2 or _never_source2

        self.ingame_tick = 0
        self.players_by_user_id: Dict[int, Any] = {}
        self.players_by_entity_id: Dict[int, Any] = {}
        self.players_by_steam_id32: Dict[int, Any] = {}
        self.player_resource_entity: Optional[Any] = None
        self.player_controller_entities: Dict[int, Any] = {}
        self.grenade_projectiles: Dict[int, Any] = {}
        self.infernos: Dict[int, Any] = {}
        self.weapons: Dict[int, Any] = {}
        self._hostages: Dict[int, Any] = {}
        self.entities: Dict[int, Any] = {}
        self.bomb: Optional[Any] = None
        self.total_rounds_played = 0
        self.game_phase = 0
        self.is_warmup_period = False
        self.is_freezetime = False
        self.is_match_started = False
        self.overtime_count = 0
        self.current_defuser: Optional[Any] = None
        self.current_planter: Optional[Any] = None
        self.thrown_grenades: Dict[Any, List[Any]] = {}
        self.rules = GameRules()

        members_of = self.participants().team_members
        self.t_state = TeamState(Team.TERRORISTS, members_of)
        self.ct_state = TeamState(Team.COUNTER_TERRORISTS, members_of)
        self.t_state.opponent = self.ct_state
        self.ct_state.opponent = self.t_state

    @property
    def hostages_by_entity_id(self) -> Dict[int, Any]:
        """Hostages keyed by entity-ID (the live map)."""
        return self._hostages

    def team(self, team: Team) -> Optional[TeamState]:
        """The state of ``team``; None unless it is T or CT."""
        if team == Team.TERRORISTS:
            return self.t_state
        if team == Team.COUNTER_TERRORISTS:
            return self.ct_state
        return None

    def participants(self) -> Participants:
        """Player helpers backed by this state's live player maps."""
        return Participants(
            players_by_user_id=self.players_by_user_id,
            players_by_entity_id=self.players_by_entity_id,
            is_source2=self._is_source2,
        )

    def hostages(self) -> List[Any]:
        """All current hostages."""
        return list(self._hostages.values())

    def entity_by_handle(self, handle: int) -> Optional[Any]:
        """The entity a handle refers to, or None if the handle is invalid."""
        return self.entities.get(entity_id_from_handle(handle, self._is_source2()))

    def handle_ingame_tick(self, tick: int) -> None:
        """Record the latest server tick number."""
        self.ingame_tick = int(tick)