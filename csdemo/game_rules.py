"""Match rules such as round, freeze and bomb timers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, Optional

_INTEGER = re.compile(r"[+-]?[0-9]+")


class GameRuleUnavailableError(LookupError):
    """A game rule value is missing or cannot be interpreted."""

    def __init__(
        self,
        message: str = (
            "failed to retrieve GameRule value, it's recommended to have a "
            "fallback to a default value for this scenario"
        ),
    ) -> None:
        super().__init__(message)


@dataclass
class GameRules:
    """The rules of the current match, from console variables and the rules entity."""

    con_vars: Dict[str, str] = field(default_factory=dict)
    entity: Optional[Any] = None

    def round_time(self) -> timedelta:
        """Round length excluding freeze time, from the rules entity."""
        if self.entity is None:
            raise GameRuleUnavailableError()
        prop = self.entity.property("cs_gamerules_data.m_iRoundTime")
        if prop is None:
            raise GameRuleUnavailableError()
        return timedelta(seconds=prop.value.int_val)

    def freeze_time(self) -> timedelta:
        """Freeze time length (mp_freezetime)."""
        return self._seconds_con_var("mp_freezetime")

    def bomb_time(self) -> timedelta:
        """Bomb timer length (mp_c4timer)."""
        return self._seconds_con_var("mp_c4timer")

    def _seconds_con_var(self, name: str) -> timedelta:
        raw = self.con_vars.get(name, "")
        if not _INTEGER.fullmatch(raw):
            raise GameRuleUnavailableError()
        return timedelta(seconds=int(raw))