"""Shared enumerations and entity-handle helpers."""

from __future__ import annotations

from enum import IntEnum

ENTITY_HANDLE_INDEX_MASK = (1 << 11) - 1
INVALID_ENTITY_HANDLE = (1 << 21) - 1

ENTITY_HANDLE_INDEX_MASK_SOURCE2 = (1 << 14) - 1
INVALID_ENTITY_HANDLE_SOURCE2 = (1 << 32) - 1

_UINT64_MASK = (1 << 64) - 1


class Team(IntEnum):
    """The side a player belongs to."""

    UNASSIGNED = 0
    SPECTATORS = 1
    TERRORISTS = 2
    COUNTER_TERRORISTS = 3


def entity_id_from_handle(handle: int, is_source2: bool) -> int:
    """Return the entity-ID encoded in ``handle``, or -1 for an invalid handle."""
    handle &= _UINT64_MASK
    if is_source2:
        if handle == INVALID_ENTITY_HANDLE_SOURCE2:
            return -1
        return handle & ENTITY_HANDLE_INDEX_MASK_SOURCE2

    if handle == INVALID_ENTITY_HANDLE:
        return -1
    return handle & ENTITY_HANDLE_INDEX_MASK