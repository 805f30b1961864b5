"""Events emitted by the parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum, auto
from typing import Dict


class WarnType(Enum):
    """Categories of non-fatal parser warnings."""

    UNDEFINED = auto()
    BOMBSITE_UNKNOWN = auto()
    TEAM_SWAP_PLAYER_NIL = auto()
    GAME_EVENT_BEFORE_DESCRIPTORS = auto()
    MISSING_NET_MESSAGE_DECRYPTION_KEY = auto()
    CANT_READ_ENCRYPTED_NET_MESSAGE = auto()


@dataclass(frozen=True)
class ParserWarn:
    """A recoverable problem found while parsing."""

    message: str
    type: WarnType = WarnType.UNDEFINED


@dataclass(frozen=True)
class ConVarsUpdated:
    """Console variables changed; holds only the updated ones."""

    updated_con_vars: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TickRateInfoAvailable:
    """The server's tick rate became known."""

    tick_rate: float
    tick_time: timedelta


@dataclass(frozen=True)
class FrameDone:
    """A demo frame has been fully processed."""


@dataclass(frozen=True)
class DataTablesParsed:
    """Server classes and data tables are available."""