# courtkit

Building blocks for a courtroom role-playing chat client: the wire packet
format, chat log formatting, countdown clocks, migration of old effects
files, a local demo playback server, music loop files, and frame-by-frame
animation timing.

## Modules

| Module | Purpose |
| --- | --- |
| `courtkit.packet` | `Packet`, `encode`, `decode`, `split_packets` for the `HEADER#field#...#%` format |
| `courtkit.chatlog` | `ChatLogPiece` log entries and `format_message` for HTML chat output |
| `courtkit.clock` | `CountdownClock` and `format_remaining` (`hh:mm:ss.zzz`) |
| `courtkit.effects_migration` | `migrate_effects` and `migrate_effects_file` for moving flat effects files to version 2 |
| `courtkit.demo` | `DemoServer`, `read_demo_lines`, `fix_wait_desync` for replaying recorded `.demo` files |
| `courtkit.loader` | `AnimationLoader` and `AnimationFrame`, decoding animated images on a worker thread |
| `courtkit.music` | `LoopPoints`, `parse_loop_file` and `song_display_name` |
| `courtkit.animation` | `AnimationLayer`, `ResizeMode`, `EmoteType`, `EffectType`, `FrameEffect`, `parse_frame_effects` |

## Packets

Fields are separated by `#` and every packet ends with `#%`. Inside a field
the characters `# % $ &` are escaped as `<num>`, `<percent>`, `<dollar>` and
`<and>`.

```python
from courtkit.packet import Packet, encode, decode, split_packets

encode("50% off #1")              # '50<percent> off <num>1'
decode("50<percent> off <num>1")  # '50% off #1'

Packet("CT", ["DEMO", "hello#world"]).to_string(True)
# 'CT#DEMO#hello<num>world#%'

[p.header for p in split_packets("HI#abc#%ID#0#%")]  # ['HI', 'ID']
```

## Chat log

`ChatLogPiece.to_string()` renders a log line as
`[timestamp] name (character) action: message`, writing `UNKNOWN` for empty
parts. `format_message(name, message, name_color, message_color)` returns an
HTML fragment with the text escaped, line breaks turned into `<br>` and
`http`/`https` links made clickable.

## Countdown clocks

```python
from courtkit.clock import CountdownClock, format_remaining

format_remaining(61_500)   # '00:01:01.500'

clock = CountdownClock()
clock.start(30_000)        # thirty seconds from now
clock.skip(5_000)          # jump five seconds ahead
clock.tick()               # refresh and return clock.text
clock.active()
```

`tick` stops the clock and shows `00:00:00.000` once the target is reached.
The clock takes an optional `now` callable returning milliseconds, which
makes it easy to drive from your own time source.

## Demo playback

`DemoServer` answers the handshake a client sends, then replays the packets
of a recorded demo, honouring the `wait#` packets between them.

```python
import asyncio
from courtkit.demo import DemoServer

server = DemoServer()
server.set_demo_file("logs/session.demo")
asyncio.run(server.serve("127.0.0.1", 0))   # runs until cancelled
```

`serve` accepts one websocket client at a time and stores the bound port in
`server.port`. Without a network you can drive a session directly with
`open_session(send)`, `receive(message)` and `close_session()`.

In the out-of-character chat the client can send:

- `/play` or `>` to start or resume playback,
- `/pause` or `|` to pause,
- `/load <path>` to load another demo file,
- `/reload` to reload the current one,
- `/max_wait <ms>` to cap each wait (negative means no cap),
- `/debug 0` or `/debug 1` to show the time to the next line on timer 4,
- `/help` for the list of commands.

Older demo files whose `wait#` packets sit one place too late can be
repaired with `fix_wait_desync`. `DemoServer` does so when given a
`confirm_fix` callback that returns true; it keeps a `.backup` copy of the
original file. A `skip_timers` callback is told how many milliseconds were
skipped when `max_wait` shortens a wait or playback is advanced early.

## Migrating effects files

```python
from courtkit.effects_migration import migrate_effects_file

migrate_effects_file("base/themes/default/effects/effects.ini")
```

Flat keys such as `realization`, `realization_scaling` and
`hearts_under_chatbox` become numbered sections with `name`, `sound`, `cull`,
`layer` and the remaining properties, plus a `[version]` section with
`major=2`. `migrate_effects` does the same on a plain mapping.

## Music loop files

`parse_loop_file(text, bytes_per_second)` reads `loop_start`, `loop_end` and
`loop_length` lines into `LoopPoints` byte positions; values are sample
counts unless the file contains `seconds=true`. `song_display_name` gives the
text shown for a song on stream 0 (music) or 1 (ambience).

## Animation timing

`AnimationLoader` decodes the frames of an image file with Pillow on a
worker thread; `frame(n)` waits until frame `n` is ready.

`AnimationLayer` steps through those frames: play-once and looping,
pausing, jumping to a frame, masking, resizing and flipping, and clamping
each frame's duration between `minimum_duration` and `maximum_duration`.
It keeps no timer of its own: after each call to `frame_ticker`,
`tick_delay` holds the milliseconds until the next call, or `None` when no
further tick is due. The rendered frame is in `image`.

`parse_frame_effects([shake, flash, sfx])` reads the per-frame effect lists
of an emote into `FrameEffect` lists keyed by frame number.

## What it does not do

courtkit has no window, widgets or audio output: it does not play music or
sound effects, draw the courtroom, or connect to a game server as a client.
The demo server is the only network service it provides.

## Running the tests

Install the `test` extra and run pytest from the project directory.