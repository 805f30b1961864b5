import dataclasses
from datetime import timedelta

import pytest

from csdemo.events import (
    ConVarsUpdated,
    DataTablesParsed,
    FrameDone,
    ParserWarn,
    TickRateInfoAvailable,
    WarnType,
)


def test_parser_warn_defaults_to_undefined():
    warn = ParserWarn(message="compressed message is corrupt")
    assert warn.type is WarnType.UNDEFINED
    assert warn.message == "compressed message is corrupt"


def test_parser_warn_with_type():
    warn = ParserWarn(
        message="encrypted net-message has invalid length",
        type=WarnType.CANT_READ_ENCRYPTED_NET_MESSAGE,
    )
    assert warn.type is WarnType.CANT_READ_ENCRYPTED_NET_MESSAGE
    assert warn == ParserWarn(
        "encrypted net-message has invalid length",
        WarnType.CANT_READ_ENCRYPTED_NET_MESSAGE,
    )


def test_warnings_of_different_types_differ():
    warnings = [ParserWarn("same message", member) for member in WarnType]
    assert len(set(warnings)) == len(warnings)
    assert [w.type for w in warnings] == list(WarnType)
    missing_key = ParserWarn("no key", WarnType.MISSING_NET_MESSAGE_DECRYPTION_KEY)
    assert missing_key.type is WarnType.MISSING_NET_MESSAGE_DECRYPTION_KEY


def test_events_are_immutable():
    warn = ParserWarn("x")
    with pytest.raises(dataclasses.FrozenInstanceError):
        warn.message = "y"
    assert warn.message == "x"


def test_con_vars_updated_holds_mapping():
    event = ConVarsUpdated({"mp_c4timer": "40"})
    assert event.updated_con_vars == {"mp_c4timer": "40"}
    assert ConVarsUpdated().updated_con_vars == {}


def test_tick_rate_info():
    event = TickRateInfoAvailable(tick_rate=64.0, tick_time=timedelta(seconds=1 / 64))
    assert event.tick_rate * event.tick_time.total_seconds() == pytest.approx(1.0)


def test_marker_events_compare_equal():
    assert FrameDone() == FrameDone()
    assert DataTablesParsed() == DataTablesParsed()
    assert FrameDone() != DataTablesParsed()