from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional

from csdemo.common import (
    ENTITY_HANDLE_INDEX_MASK,
    INVALID_ENTITY_HANDLE,
    INVALID_ENTITY_HANDLE_SOURCE2,
    Team,
)
from csdemo.game_state import GameState, TeamState


@dataclass(eq=False)
class FakePlayer:
    team: Team = Team.UNASSIGNED
    is_connected: bool = True
    entity: Optional[Any] = "entity"


def test_new_game_state_is_empty():
    gs = GameState()
    assert gs.players_by_entity_id == {}
    assert gs.players_by_user_id == {}
    assert gs.grenade_projectiles == {}
    assert gs.infernos == {}
    assert gs.weapons == {}
    assert gs.hostages() == []
    assert gs.entities == {}
    assert gs.rules.con_vars == {}
    assert gs.t_state.team == Team.TERRORISTS
    assert gs.ct_state.team == Team.COUNTER_TERRORISTS


def test_team_state_identity():
    gs = GameState()
    assert gs.team(Team.COUNTER_TERRORISTS) is gs.ct_state
    assert gs.team(Team.TERRORISTS) is gs.t_state
    assert gs.team(Team.SPECTATORS) is None
    assert gs.team(Team.UNASSIGNED) is None


def test_team_state_opponent():
    gs = GameState()
    assert gs.t_state.opponent is gs.ct_state
    assert gs.ct_state.opponent is gs.t_state


def test_team_state_members_follow_players():
    gs = GameState()
    t = FakePlayer(team=Team.TERRORISTS)
    ct = FakePlayer(team=Team.COUNTER_TERRORISTS)
    assert gs.t_state.members() == []
    gs.players_by_user_id[0] = t
    gs.players_by_user_id[1] = ct
    assert gs.t_state.members() == [t]
    assert gs.ct_state.members() == [ct]


def test_team_state_standalone_members():
    ts = TeamState(Team.TERRORISTS, lambda team: [team])
    assert ts.members() == [Team.TERRORISTS]


def test_participants_live_view_and_snapshots():
    gs = GameState()
    ptcp = gs.participants()
    by_entity = ptcp.by_entity_id()
    by_user = ptcp.by_user_id()
    all_by_user = ptcp.all_by_user_id()

    gs.players_by_entity_id[0] = FakePlayer()
    gs.players_by_user_id[0] = FakePlayer()

    assert ptcp.by_entity_id() == gs.players_by_entity_id
    assert ptcp.by_user_id() == gs.players_by_user_id
    assert ptcp.all_by_user_id() == gs.players_by_user_id

    assert by_entity != ptcp.by_entity_id()
    by_user2 = ptcp.by_user_id()
    assert by_user != by_user2

    disconnected = FakePlayer(is_connected=False)
    gs.players_by_entity_id[1] = disconnected
    gs.players_by_user_id[1] = disconnected

    assert ptcp.all_by_user_id() == gs.players_by_user_id
    assert by_entity != ptcp.by_entity_id()
    assert ptcp.by_user_id() == by_user2
    assert all_by_user != ptcp.by_user_id()


def test_hostages_in_insertion_order():
    gs = GameState()
    a, b = object(), object()
    gs.hostages_by_entity_id[0] = a
    gs.hostages_by_entity_id[1] = b
    assert gs.hostages() == [a, b]


def test_is_freezetime():
    gs = GameState()
    assert gs.is_freezetime is False
    gs.is_freezetime = True
    assert gs.is_freezetime is True


def test_entity_by_handle_source1():
    gs = GameState()
    entity = object()
    gs.entities[3000 & ENTITY_HANDLE_INDEX_MASK] = entity
    assert gs.entity_by_handle(3000) is entity
    gs.entities[INVALID_ENTITY_HANDLE & ENTITY_HANDLE_INDEX_MASK] = object()
    assert gs.entity_by_handle(INVALID_ENTITY_HANDLE) is None


def test_entity_by_handle_source2():
    gs = GameState(is_source2=lambda: True)
    entity = object()
    gs.entities[5] = entity
    assert gs.entity_by_handle((7 << 14) | 5) is entity
    assert gs.entity_by_handle(INVALID_ENTITY_HANDLE_SOURCE2) is None


def test_participants_find_by_handle_uses_source2_flag():
    gs = GameState(is_source2=lambda: True)
    player = FakePlayer()
    gs.players_by_entity_id[5] = player
    assert gs.participants().find_by_handle64((1 << 14) | 5) is player


def test_handle_ingame_tick():
    gs = GameState()
    gs.handle_ingame_tick(42)
    assert gs.ingame_tick == 42
    gs.handle_ingame_tick(-3)
    assert gs.ingame_tick == -3


def test_rules_are_live():
    gs = GameState()
    gs.rules.con_vars["mp_c4timer"] = "40"
    assert gs.rules.bomb_time() == timedelta(seconds=40)