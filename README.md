# csdemo

`csdemo` reads Counter-Strike demo files (`.dem`) frame by frame. It supports
both the `HL2DEMO` and the `PBDEMS2` formats. As it reads, it keeps track of the
server tick and the frame count. It sends events and net-messages to the
handlers you register, one handler per type.

## Installation

```
pip install csdemo
```

For development, install the test extra with `pip install csdemo[test]`, then
run the suite with `pytest`.

## Parsing a demo

```python
from csdemo.parser import Parser, ParserConfig
from csdemo.events import FrameDone

frames = 0

def on_frame(_event):
    global frames
    frames += 1

with open("match.dem", "rb") as stream, Parser(stream, ParserConfig()) as parser:
    header = parser.parse_header()
    print("Map:", header.map_name)

    parser.register_event_handler(FrameDone, on_frame)
    parser.parse_to_end()

    print("Frames:", frames, "Tick rate:", parser.tick_rate())
```

The main `Parser` methods:

- `parse_header()` reads the header and returns a copy of it as a
  `DemoHeader`. If you don't call it yourself, the first parsing call reads the
  header for you. `header()` also returns a copy, and raises `DemoParseError`
  when the header has not been read yet.
- `parse_next_frame()` parses a single demo frame. It returns `False` once the
  demo's stop command is reached.
- `parse_to_end()` parses every remaining frame. If the header gives no tick
  count, it fills in the playback ticks, frames and time from what it parsed.
- `progress()` returns the share of frames parsed so far, from 0 to 1. The total
  comes from the header.
- `current_time()` returns the time since the start of the demo.
- `tick_rate()` returns -1 when the rate is unknown.
- `tick_time()` returns `None` when the tick time is unknown.
- `tick_interval` can be set. When it is unset, the header values are used
  instead.
- `cancel()` unregisters all handlers, which ends parsing with
  `ParsingCancelledError`.
- `close()`, which the `with` block also calls, drops any queued messages.

If a handler raises an exception, the parser records it and raises it again
from the parsing call.

### Net-messages

Packet frames in `HL2DEMO` demos carry net-messages. Each one has a numeric ID.
You choose which IDs to decode with
`ParserConfig.additional_net_message_creators`: a map from an ID to a callable
that turns the message's raw bytes into an object. Each object made this way
goes to the handlers registered for its type with
`register_net_message_handler(message_type, handler)`. Net-messages without a
creator are skipped. If a creator raises an exception, parsing stops with a
`DemoParseError`.

### Dispatching

Both kinds of handler are managed by `csdemo.dispatch.Dispatcher`. A handler
registered for `object` receives everything. Handlers run in the order they
were registered. The returned identifier removes a handler again, through
`unregister_event_handler()` or `unregister_net_message_handler()`.

## Errors

Every parsing error is a subclass of `csdemo.header.DemoParseError`:

- `InvalidFileTypeError`: the stream does not begin with a known demo stamp.
- `UnexpectedEndOfDemoError`: the stream ended in the middle of the header or a
  frame.
- `ParsingCancelledError`: `cancel()` was called.

`csdemo.header.read_header(stream)` reads just the header, without building a
parser.

## Game state

`parser.game_state` is a `csdemo.game_state.GameState`. It holds:

- `ingame_tick`
- maps of players, entities, weapons, grenade projectiles and infernos
- the match `rules`

It also offers these methods:

- `team(Team.TERRORISTS)` returns the `TeamState` for that side. `members()`
  lists its players and `opponent` gives the other side.
- `participants()` returns a `csdemo.participants.Participants` view of the live
  player maps. It has `by_user_id()`, `by_entity_id()`, `all()`, `connected()`,
  `playing()`, `team_members(team)`, `find_by_handle64(handle)`,
  `find_by_pawn_handle(handle)`, `spotters_of(player)` and `spotted_by(player)`.
- `hostages()` lists the hostages. `entity_by_handle(handle)` looks an entity up
  by handle, as decoded by `csdemo.common.entity_id_from_handle`.

`csdemo.game_rules.GameRules` works from console variables and an optional rules
entity. `round_time()`, `freeze_time()` and `bomb_time()` return
`datetime.timedelta` values. If a value is missing or is not a whole number,
they raise `GameRuleUnavailableError`.

## What it does not do

The parser moves through the demo's frames. It does not decode their contents:

- It skips data tables, string tables, console and user commands, and the
  payloads of `PBDEMS2` frames. Compressed `PBDEMS2` frames are not
  decompressed.
- It does not decode entities, game events or encrypted net-messages.
- It only decodes net-messages that you supply creators for.

As a result, the parser itself fills in only the tick number of the game state.
The player, entity and rules containers stay empty until your own code fills
them.

The only event the parser sends is `FrameDone`. These classes in
`csdemo.events` are there for code that produces those events itself:

- `ParserWarn` (with `WarnType`)
- `ConVarsUpdated`
- `TickRateInfoAvailable`
- `DataTablesParsed`

There is no command-line tool.