"""Frame-by-frame playback of animated images, with emote frame effects."""

from __future__ import annotations

import enum
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from PIL import Image

from courtkit.loader import AnimationFrame, AnimationLoader

INVALID_FILE = "Invalid File"

Size = tuple[int, int]
Rect = tuple[int, int, int, int]


class ResizeMode(enum.Enum):
    """How frames are resampled when scaled to the layer."""

    AUTO = "auto"
    PIXEL = "pixel"
    SMOOTH = "smooth"


class EmoteType(enum.Enum):
    """Which stage of a character's emote an animation belongs to."""

    NONE = 0
    PRE = 1
    IDLE = 2
    TALK = 3
    POST = 4


class EffectType(enum.Enum):
    """Kinds of effect that can be tied to a frame of an emote."""

    SFX = 0
    SHAKE = 1
    FLASH = 2


_EFFECT_ORDER = (EffectType.SHAKE, EffectType.FLASH, EffectType.SFX)


@dataclass
class FrameEffect:
    """An effect fired when a given emote reaches a given frame."""

    emote_name: str = ""
    type: EffectType = EffectType.SFX
    file_name: str = ""


def _to_int(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        return 0


def parse_frame_effects(data: Sequence[str]) -> dict[int, list[FrameEffect]]:
    """Parse shake, flash and sfx frame data into effects keyed by frame number.

    Each entry holds ``emote|frame=value|...`` groups separated by ``^``; the
    entries are, in order, screenshake, flash and sound effects.
    """
    if len(data) > len(_EFFECT_ORDER):
        raise ValueError(f"expected at most {len(_EFFECT_ORDER)} effect lists, got {len(data)}")

    effects: dict[int, list[FrameEffect]] = {}
    for effect_type, entry in zip(_EFFECT_ORDER, data):
        for emote in entry.split("^"):
            emote_name, *raw_effects = emote.split("|")
            for raw_effect in raw_effects:
                frame_data = raw_effect.split("=")
                if len(frame_data) < 2:
                    continue
                effect = FrameEffect(emote_name=emote_name, type=effect_type)
                if effect_type is EffectType.SFX:
                    effect.file_name = frame_data[1]
                effects.setdefault(_to_int(frame_data[0]), []).append(effect)
    return dict(sorted(effects.items()))


class Signal:
    """A list of callbacks invoked together."""

    def __init__(self) -> None:
        self._slots: list[Callable[..., object]] = []

    def connect(self, slot: Callable[..., object]) -> None:
        self._slots.append(slot)

    def emit(self, *args: object) -> None:
        for slot in list(self._slots):
            slot(*args)


def _qround(value: float) -> int:
    return int(value + 0.5) if value >= 0 else int(value - 0.5)


def _valid(size: Size | None) -> bool:
    return size is not None and size[0] >= 0 and size[1] >= 0


def _contains(outer: Rect, inner: Rect | None) -> bool:
    if inner is None:
        return False
    ox, oy, ow, oh = outer
    ix, iy, iw, ih = inner
    if ow <= 0 or oh <= 0 or iw <= 0 or ih <= 0:
        return False
    return ix >= ox and iy >= oy and ix + iw <= ox + ow and iy + ih <= oy + oh


class AnimationLayer:
    """Plays an animated image one frame at a time.

    The layer does not keep time itself: after each frame ``tick_delay``
    holds the milliseconds until ``frame_ticker`` should be called again,
    or ``None`` when no further tick is due.
    """

    def __init__(self, loader_factory: Callable[[], AnimationLoader] = AnimationLoader) -> None:
        self._loader_factory = loader_factory
        self._loader: AnimationLoader | None = None

        self.file_name = ""
        self.play_once = False
        self.stretch_to_fit = False
        self.reset_cache_when_stopped = False
        self.flipped = False
        self.minimum_duration = 0
        self.maximum_duration = 0
        self.resize_mode = ResizeMode.AUTO
        self.visible = False

        self.size: Size | None = None
        self.frame_size: Size | None = None
        self.frame_count = 0
        self.current_frame_number = 0
        self.image: Image.Image | None = None
        self.tick_delay: int | None = None

        self._frame_rect: Rect = (0, 0, 0, 0)
        self._mask_rect_hint: Rect | None = None
        self._mask_rect: Rect | None = None
        self._scaled_frame_size: Size | None = None
        self._resample = Image.Resampling.BILINEAR
        self._processing = False
        self._pause = False
        self._first_frame = False
        self._target_frame_number = -1
        self._current_frame = AnimationFrame()

        self.started_playback = Signal()
        self.stopped_playback = Signal()
        self.finished_playback = Signal()
        self.frame_number_changed = Signal()

        self._create_loader()

    def __enter__(self) -> AnimationLayer:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Stop playback and any frame decoding in progress."""
        self.tick_delay = None
        self._processing = False
        if self._loader is not None:
            self._loader.stop_loading()
            self._loader = None

    @property
    def processing(self) -> bool:
        return self._processing

    @property
    def paused(self) -> bool:
        return self._pause

    def set_file_name(self, file_name: str) -> None:
        self.stop_playback()
        self.file_name = file_name if file_name.strip() else INVALID_FILE
        self._reset_data()

    def start_playback(self) -> None:
        if self._processing:
            return
        self._reset_data()
        self._processing = True
        self.visible = True
        self.started_playback.emit()
        self.frame_ticker()

    def stop_playback(self) -> None:
        self.tick_delay = None
        self._processing = False
        if self.reset_cache_when_stopped:
            self._create_loader()
        self.stopped_playback.emit()

    def restart_playback(self) -> None:
        self.stop_playback()
        self.start_playback()

    def pause_playback(self, enabled: bool) -> None:
        self._pause = enabled

    def jump_to_frame(self, number: int) -> None:
        """Show frame ``number`` next; out-of-range numbers are ignored."""
        if not 0 <= number < self.frame_count:
            return
        self.tick_delay = None
        self._target_frame_number = number
        if self._processing:
            self.frame_ticker()

    def resize(self, width: int, height: int) -> None:
        self.size = (width, height)
        self._calculate_frame_geometry()

    def set_masking_rect(self, rect: Rect | None) -> None:
        """Show only ``(x, y, width, height)`` of each frame, if it fits inside."""
        self._mask_rect_hint = rect
        self._calculate_frame_geometry()

    def next_tick_duration(self) -> int:
        """Milliseconds to show the current frame, within the set limits."""
        duration = max(self.minimum_duration, self._current_frame.duration)
        if self.maximum_duration > 0:
            duration = min(self.maximum_duration, duration)
        return duration

    def frame_ticker(self) -> None:
        """Advance to and display the next frame."""
        self.tick_delay = None
        if not self._processing:
            return

        if self.frame_count < 1:
            if self.play_once:
                self._finish_playback()
            else:
                self.stop_playback()
            return

        if self._pause and not self._first_frame:
            return

        if self.current_frame_number == self.frame_count:
            if self.play_once:
                self._finish_playback()
                return
            if self.frame_count > 1:
                self.current_frame_number = 0
            else:
                return

        self._first_frame = False
        if self._target_frame_number != -1:
            self.current_frame_number = self._target_frame_number
            self._target_frame_number = -1
        self._current_frame = self._loader.frame(self.current_frame_number)
        self._display_current_frame()
        self.frame_number_changed.emit(self.current_frame_number)
        self.current_frame_number += 1

        if not self._pause:
            self.tick_delay = self.next_tick_duration()

    def _create_loader(self) -> None:
        if self._loader is not None:
            self._loader.stop_loading()
        self._loader = self._loader_factory()

    def _reset_data(self) -> None:
        self._first_frame = True
        self.current_frame_number = 0
        if self.file_name != self._loader.loaded_file_name:
            self._loader.load(self.file_name)
        self.frame_count = self._loader.frame_count
        self.frame_size = self._loader.size
        width, height = self.frame_size if self.frame_size is not None else (0, 0)
        self._frame_rect = (0, 0, width, height)
        self.tick_delay = None
        self._calculate_frame_geometry()

    def _calculate_frame_geometry(self) -> None:
        self._mask_rect = None
        self._scaled_frame_size = None
        self._resample = Image.Resampling.BILINEAR

        if not _valid(self.size) or not _valid(self.frame_size):
            return

        if self.stretch_to_fit:
            self._scaled_frame_size = self.size
        else:
            scaled = self.frame_size
            if _contains(self._frame_rect, self._mask_rect_hint):
                self._mask_rect = self._mask_rect_hint
                scaled = self._mask_rect_hint[2:]
            if scaled[1] > 0:
                scale = self.size[1] / scaled[1]
                scaled = (_qround(scaled[0] * scale), _qround(scaled[1] * scale))
            self._scaled_frame_size = scaled
            if self.frame_size[1] < self.size[1]:
                self._resample = Image.Resampling.NEAREST

        if self.resize_mode is ResizeMode.PIXEL:
            self._resample = Image.Resampling.NEAREST
        elif self.resize_mode is ResizeMode.SMOOTH:
            self._resample = Image.Resampling.BILINEAR

        self._display_current_frame()

    def _finish_playback(self) -> None:
        self.stop_playback()
        self.finished_playback.emit()

    def _display_current_frame(self) -> None:
        if not _valid(self.frame_size):
            self.image = Image.new("RGBA", (1, 1), (0, 0, 0, 0))
            return

        image = self._current_frame.texture
        if image is not None and self._mask_rect is not None:
            x, y, width, height = self._mask_rect
            image = image.crop((x, y, x + width, y + height))

        if image is not None:
            target = self._scaled_frame_size
            if target is None or target[0] <= 0 or target[1] <= 0:
                image = None
            else:
                image = image.resize(target, self._resample)
                if self.flipped:
                    image = image.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
        self.image = image