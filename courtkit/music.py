"""Loop point files and the song names shown for music streams."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import unquote, urlsplit

STREAM_COUNT = 2
MUSIC_STREAM = 0
AMBIENCE_STREAM = 1

STOP_SONG = "~stop.mp3"

SAMPLE_SIZE = 16 // 8
CHANNEL_COUNT = 2
_FRAME_BYTES = SAMPLE_SIZE * CHANNEL_COUNT
_UINT32 = 0xFFFFFFFF

_UNSIGNED = re.compile(r"\+?\d+")


@dataclass(frozen=True)
class LoopPoints:
    """Loop start and end positions, in bytes of decoded audio."""

    start: int = 0
    end: int = 0

    @property
    def has_loop(self) -> bool:
        """True when the end lies after the start; otherwise loop at end of file."""
        return self.start < self.end


def _to_unsigned(text: str) -> int:
    if not _UNSIGNED.fullmatch(text):
        return 0
    value = int(text)
    return value if value <= _UINT32 else 0


def _to_float(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        return 0.0


def _seconds_to_bytes(seconds: float, bytes_per_second: int) -> int:
    byte_count = max(0, int(seconds * bytes_per_second))
    return byte_count - byte_count % _FRAME_BYTES


def parse_loop_file(text: str, bytes_per_second: int) -> LoopPoints:
    """Read ``key=value`` loop data; values are samples unless ``seconds=true``."""
    start = 0
    end = 0
    seconds_mode = False
    for line in text.split("\n"):
        args = line.split("=")
        if len(args) < 2:
            continue
        key = args[0].strip()
        value = args[1].strip()
        if key == "seconds":
            if value == "true":
                seconds_mode = True
            continue

        if seconds_mode:
            byte_count = _seconds_to_bytes(_to_float(value), bytes_per_second)
        else:
            byte_count = _to_unsigned(value) * _FRAME_BYTES
        byte_count &= _UINT32

        if key == "loop_start":
            start = byte_count
        elif key == "loop_length":
            end = (start + byte_count) & _UINT32
        elif key == "loop_end":
            end = byte_count
    return LoopPoints(start, end)


def _clean_name(song: str) -> str:
    name = unquote(urlsplit(song).path.rsplit("/", 1)[-1])
    dot = name.rfind(".")
    return name if dot == -1 else name[:dot]


def song_display_name(song: str, stream_id: int, missing: bool = False, streaming: bool = True) -> str:
    """Text to show for a song started on a stream.

    ``missing`` tells that the file could not be opened and ``streaming``
    whether playing from URLs is allowed.
    """
    if not 0 <= stream_id < STREAM_COUNT:
        raise ValueError(f"invalid stream ID {stream_id}")

    is_url = song.startswith("http")
    if is_url and not streaming:
        return "[MISSING] Streaming disabled."

    name = _clean_name(song)
    if song == STOP_SONG and stream_id == MUSIC_STREAM:
        return "None"
    if missing:
        return f"[MISSING] {name}"
    if is_url and stream_id == MUSIC_STREAM:
        return f"[STREAM] {name}"
    if stream_id == MUSIC_STREAM:
        return name
    return ""