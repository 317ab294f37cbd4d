"""Background decoding of animated images into a list of frames."""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_for_futures
from dataclasses import dataclass
from functools import lru_cache

from PIL import Image

MAX_LOADER_THREADS = 8


@lru_cache(maxsize=None)
def _shared_executor() -> ThreadPoolExecutor:
    return ThreadPoolExecutor(max_workers=MAX_LOADER_THREADS, thread_name_prefix="animation-loader")


def _open_image(file_name: str) -> Image.Image | None:
    try:
        return Image.open(file_name)
    except (OSError, ValueError):
        return None


def _loop_count(image: Image.Image, frame_count: int) -> int:
    if frame_count <= 1:
        return 0
    loop = image.info.get("loop")
    if loop is None:
        return 0
    return -1 if loop == 0 else int(loop)


@dataclass
class AnimationFrame:
    """A decoded frame and how long it stays on screen, in milliseconds."""

    texture: Image.Image | None = None
    duration: int = 0


class AnimationLoader:
    """Decodes the frames of an image file on a worker thread.

    Frames are handed out as soon as they are decoded; asking for a frame
    that is not decoded yet blocks until it is.
    """

    def __init__(self, executor: Executor | None = None) -> None:
        self._executor = executor if executor is not None else _shared_executor()
        self.loaded_file_name = ""
        self.size: tuple[int, int] | None = None
        self.frame_count = 0
        self.loop_count = -1
        self._frames: list[AnimationFrame] = []
        self._condition = threading.Condition()
        self._exit = threading.Event()
        self._finished = True
        self._task: Future | None = None

    def __enter__(self) -> AnimationLoader:
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop_loading()

    def load(self, file_name: str) -> None:
        """Start decoding ``file_name``; does nothing if it is already loaded."""
        if file_name == self.loaded_file_name:
            return
        self.stop_loading()
        self.loaded_file_name = file_name

        image = _open_image(file_name)
        with self._condition:
            self._frames = []
            self._finished = image is None

        if image is None:
            self.size = None
            self.frame_count = 0
            self.loop_count = -1
            return

        self.size = image.size
        self.frame_count = int(getattr(image, "n_frames", 1))
        self.loop_count = _loop_count(image, self.frame_count)
        self._exit.clear()
        self._task = self._executor.submit(self._populate, image, self.frame_count)

    def stop_loading(self) -> None:
        """Ask the worker to stop and wait until it has."""
        self._exit.set()
        if self._task is not None:
            wait_for_futures([self._task])
            self._task = None

    def frame(self, frame_number: int) -> AnimationFrame:
        """Return a frame, waiting for it to be decoded if necessary."""
        if self.frame_count <= 0:
            return AnimationFrame()
        if not 0 <= frame_number < self.frame_count:
            raise IndexError(f"frame {frame_number} out of range (frame count: {self.frame_count})")
        with self._condition:
            self._condition.wait_for(lambda: len(self._frames) > frame_number or self._finished)
            if len(self._frames) <= frame_number:
                raise IndexError(f"frame {frame_number} of {self.loaded_file_name!r} could not be decoded")
            return self._frames[frame_number]

    def _populate(self, image: Image.Image, frame_count: int) -> None:
        try:
            for index in range(frame_count):
                if self._exit.is_set():
                    break
                image.seek(index)
                frame = AnimationFrame(
                    texture=image.convert("RGBA"),
                    duration=int(image.info.get("duration", 0) or 0),
                )
                with self._condition:
                    self._frames.append(frame)
                    self._condition.notify_all()
        except (OSError, EOFError, ValueError):
            pass
        finally:
            image.close()
            with self._condition:
                self._finished = True
                self._condition.notify_all()