"""Local playback server that replays recorded demo files to a client."""

from __future__ import annotations

import asyncio
import re
import shutil
import time
from collections import deque
from collections.abc import Callable, Iterable
from pathlib import Path

from courtkit.packet import Packet, split_packets

FEATURES = (
    "noencryption", "yellowtext", "prezoom", "flipping", "customobjections",
    "fastloading", "deskmod", "evidence", "cccc_ic_support", "arup",
    "casing_alerts", "modcall_reason", "looping_sfx", "additive", "effects",
    "y_offset", "expanded_desk_mods",
)

LOADED_TEXT = "Demo file loaded. Send /play or > in OOC to begin playback."
RELOADED_TEXT = "Current demo file reloaded. Send /play or > in OOC to begin playback."
END_TEXT = (
    "Reached the end of the demo file. Send /play or > in OOC to restart, "
    "or /load to open a new file."
)
HELP_TEXT = "Available commands:\nload, reload, play, pause, max_wait, debug, help"
DEBUG_USAGE_TEXT = (
    "Set debug mode using /debug 1 to enable, and /debug 0 to disable, which will "
    "use the fifth timer (TI#4) to show the remaining time until next demo line."
)

_INTEGER = re.compile(r"\s*[+-]?\d+\s*")


def _monotonic_ms() -> int:
    return time.monotonic_ns() // 1_000_000


def _to_int(text: str) -> int | None:
    return int(text) if _INTEGER.fullmatch(text) else None


def read_demo_lines(path: str | Path) -> list[str]:
    """Read a demo file into packets, joining lines until each ends with '%'."""
    text = Path(path).read_text(encoding="utf-8")
    raw_lines = text.split("\n")
    if text.endswith("\n"):
        raw_lines.pop()
    lines = iter(line.removesuffix("\r") for line in raw_lines if text)

    packets = []
    for line in lines:
        while not line.endswith("%"):
            following = next(lines, None)
            if following is None:
                break
            line += "\n" + following
        packets.append(line)
    return packets


def fix_wait_desync(packets: Iterable[str]) -> list[str]:
    """Move every wait packet one place earlier, repairing old broken demos."""
    fixed: list[str] = []
    for packet in packets:
        if not packet.startswith("SC#") and packet.startswith("wait#"):
            fixed.insert(max(1, len(fixed) - 1), packet)
        else:
            fixed.append(packet)
    return fixed


class PlaybackTimer:
    """Single-shot timer measured in milliseconds.

    When an asyncio loop is running the callback fires on its own; otherwise
    the timer only keeps track of its deadline.
    """

    def __init__(self, callback: Callable[[], None], clock: Callable[[], int]) -> None:
        self._callback = callback
        self._clock = clock
        self.interval = 0
        self._deadline = 0
        self._active = False
        self._handle: asyncio.TimerHandle | None = None

    @property
    def active(self) -> bool:
        return self._active

    def start(self, interval: int | None = None) -> None:
        if interval is not None:
            self.interval = interval
        self.stop()
        duration = max(0, self.interval)
        self._deadline = self._clock() + duration
        self._active = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._handle = loop.call_later(duration / 1000, self._fire)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._active = False

    def remaining_time(self) -> int:
        """Milliseconds left, or -1 when the timer is not running."""
        if not self._active:
            return -1
        return max(0, self._deadline - self._clock())

    def _fire(self) -> None:
        self._handle = None
        self._active = False
        self._callback()


class DemoServer:
    """A minimal server that replays a demo file to one connected client."""

    def __init__(
        self,
        clock: Callable[[], int] = _monotonic_ms,
        skip_timers: Callable[[int], None] | None = None,
        confirm_fix: Callable[[str], bool] | None = None,
    ) -> None:
        self.port = 0
        self.max_wait = -1
        self.debug_mode = False
        self.demo_data: deque[str] = deque()
        self.sc_packet = ""
        self.num_chars = 0
        self.path = ""
        self.filename = ""
        self.elapsed_time = 0
        self.timer = PlaybackTimer(self.playback, clock)
        self._skip_timers = skip_timers
        self._confirm_fix = confirm_fix
        self._send: Callable[[str], object] | None = None

    @property
    def connected(self) -> bool:
        return self._send is not None

    def set_demo_file(self, path: str | Path) -> None:
        self.filename = str(path)

    def load_demo(self, path: str | Path) -> bool:
        """Load a demo file into the playback queue; False if it cannot be read."""
        path = str(path)
        try:
            packets = read_demo_lines(path)
        except OSError:
            return False
        self.demo_data = deque(packets)
        self.path = path

        broken = (
            self.demo_data
            and self.demo_data[0].startswith("SC#")
            and self.demo_data[-1].startswith("wait#")
        )
        if broken and self._confirm_fix is not None and self._confirm_fix(path):
            backup = Path(path + ".backup")
            if not backup.exists():
                shutil.copyfile(path, backup)
            fixed = fix_wait_desync(self.demo_data)
            Path(path).write_text("\n".join(fixed), encoding="utf-8")
            return self.load_demo(path)
        return True

    def open_session(self, send: Callable[[str], object]) -> bool:
        """Accept a client that receives text through ``send``; False if refused."""
        if not self.filename:
            return False
        self.load_demo(self.filename)
        if not self.demo_data:
            return False

        if self.demo_data[0].startswith("SC#"):
            self.sc_packet = self.demo_data.popleft()
        else:
            self.sc_packet = "SC#%"
        # The character count is advertised as zero; the SC packet carries the list.
        self.num_chars = 0

        if self._send is not None:
            return False
        self._send = send
        self._send("decryptor#NOENCRYPT#%")
        return True

    def close_session(self) -> None:
        self.timer.stop()
        self._send = None

    def receive(self, message: str) -> None:
        for packet in split_packets(message):
            self.handle_packet(packet)

    def _emit(self, text: str) -> None:
        if self._send is None:
            raise RuntimeError("no client is connected")
        self._send(text)

    def _notice(self, text: str) -> None:
        self._emit(f"CT#DEMO#{text}#1#%")

    def handle_packet(self, packet: Packet) -> None:
        header = packet.header
        if header == "HI":
            self._emit("ID#0#DEMOINTERNAL#0#%")
        elif header == "ID":
            self._emit("PN#0#1#%")
            self._emit("FL#" + "#".join(FEATURES) + "#%")
        elif header == "askchaa":
            self._emit(f"SI#{self.num_chars}#0#1#%")
        elif header == "RC":
            self._emit(self.sc_packet)
        elif header == "RM":
            self._emit("SM#%")
        elif header == "RD":
            self._emit("DONE#%")
        elif header == "CC":
            self._emit("PV#0#CID#-1#%")
            self._notice(LOADED_TEXT)
        elif header == "CT" and len(packet.content) > 1:
            self._handle_command(packet.content[1])

    def _handle_command(self, command: str) -> None:
        if command.startswith("/load"):
            path = command.partition(" ")[2].strip()
            if not path:
                return
            self.load_demo(path)
            self._notice(LOADED_TEXT)
            self.reset_state()
        elif command.startswith("/play") or command == ">":
            if self.timer.interval != 0 and not self.timer.active:
                self.timer.start()
                self._notice("Resuming playback.")
            else:
                if not self.demo_data and self.path:
                    self.load_demo(self.path)
                self.playback()
        elif command.startswith("/pause") or command == "|":
            time_left = self.timer.remaining_time()
            self.timer.stop()
            self.timer.interval = time_left
            self._notice("Pausing playback.")
        elif command.startswith("/max_wait"):
            args = command.split(" ")
            if len(args) > 1:
                value = _to_int(args[1])
                if value is None:
                    self._notice("Not a valid integer!")
                else:
                    self.max_wait = -1 if value < 0 else value
                    self._notice(f"Setting max_wait to {self.max_wait} milliseconds.")
            else:
                self._notice(f"Current max_wait is {self.max_wait}milliseconds.")
        elif command.startswith("/reload"):
            self.load_demo(self.path)
            self._notice(RELOADED_TEXT)
            self.reset_state()
        elif command.startswith("/min_wait"):
            self._notice("min_wait is deprecated. Use the client Settings for minimum wait instead!")
        elif command.startswith("/debug"):
            args = command.split(" ")
            if len(args) > 1:
                value = _to_int(args[1])
                if value in (0, 1):
                    self.debug_mode = value == 1
                    self._notice(f"Setting debug mode to {int(self.debug_mode)}")
                    if not self.debug_mode:
                        self._emit("TI#4#1#0#%")
                        self._emit("TI#4#3#0#%")
                else:
                    self._notice("Valid values are 1 or 0!")
            else:
                self._notice(DEBUG_USAGE_TEXT)
        elif command.startswith("/help"):
            self._notice(HELP_TEXT)

    def reset_state(self) -> None:
        """Clear evidence and timers on the client and stop the wait timer."""
        self._emit("LE##%")
        for timer_id in range(5):
            self._emit(f"TI#{timer_id}#1#0#%")
            self._emit(f"TI#{timer_id}#3#0#%")
        self._emit("BN#default#wit#%")
        self.timer.stop()

    def playback(self) -> None:
        """Send packets up to the next wait packet and schedule the one after."""
        if not self.demo_data:
            return

        current = self.demo_data.popleft()
        if current.startswith("MS#"):
            self.elapsed_time = 0

        while not current.startswith("wait#"):
            self._emit(current)
            if not self.demo_data:
                break
            current = self.demo_data.popleft()

        if not self.demo_data:
            self._notice(END_TEXT)
            self.timer.interval = 0
            return

        fields = (current[:-1] if current.endswith("#") else current).split("#")[1:]
        duration = (_to_int(fields[0]) or 0) if fields else 0

        if self.max_wait != -1 and duration + self.elapsed_time > self.max_wait:
            previous = duration
            duration = max(0, self.max_wait - self.elapsed_time)
            if self._skip_timers is not None:
                self._skip_timers(previous - duration)
        elif self.timer.remaining_time() > 0:
            if self._skip_timers is not None:
                self._skip_timers(self.timer.remaining_time())

        self.elapsed_time += duration
        self.timer.start(duration)
        if self.debug_mode:
            self._emit("TI#4#2#%")
            self._emit(f"TI#4#0#{duration}#%")

    async def serve(self, host: str = "127.0.0.1", port: int = 0) -> None:
        """Listen for a websocket client and replay the demo until cancelled."""
        import websockets

        async with websockets.serve(self._handle_connection, host, port) as server:
            self.port = next(iter(server.sockets)).getsockname()[1]
            await asyncio.Future()

    async def _handle_connection(self, websocket, *_unused) -> None:
        outgoing: asyncio.Queue[str] = asyncio.Queue()
        if not self.open_session(outgoing.put_nowait):
            await websocket.close()
            return

        async def writer() -> None:
            while True:
                await websocket.send(await outgoing.get())

        writer_task = asyncio.create_task(writer())
        try:
            async for message in websocket:
                if isinstance(message, bytes):
                    message = message.decode("utf-8")
                self.receive(message)
        finally:
            self.close_session()
            writer_task.cancel()