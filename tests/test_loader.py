from concurrent.futures import ThreadPoolExecutor

import pytest
from PIL import Image

from courtkit.loader import AnimationFrame, AnimationLoader

COLORS = [(255, 0, 0), (0, 255, 0), (0, 0, 255)]
DURATIONS = [100, 200, 300]


@pytest.fixture
def gif_path(tmp_path):
    path = tmp_path / "anim.gif"
    frames = [Image.new("RGB", (4, 4), color) for color in COLORS]
    frames[0].save(path, save_all=True, append_images=frames[1:], duration=DURATIONS, loop=0)
    return str(path)


@pytest.fixture
def png_path(tmp_path):
    path = tmp_path / "still.png"
    Image.new("RGB", (6, 3), (10, 20, 30)).save(path)
    return str(path)


@pytest.fixture
def loader():
    with AnimationLoader() as instance:
        yield instance


def test_animated_metadata(loader, gif_path):
    loader.load(gif_path)
    assert loader.loaded_file_name == gif_path
    assert loader.size == (4, 4)
    assert loader.frame_count == len(COLORS)
    assert loader.loop_count == -1


def test_frames_have_durations_and_pixels(loader, gif_path):
    loader.load(gif_path)
    for index, (color, duration) in enumerate(zip(COLORS, DURATIONS)):
        frame = loader.frame(index)
        assert frame.duration == duration
        assert frame.texture.getpixel((0, 0)) == (*color, 255)


def test_static_image_has_one_frame(loader, png_path):
    loader.load(png_path)
    assert loader.frame_count == 1
    assert loader.size == (6, 3)
    frame = loader.frame(0)
    assert frame.duration == 0
    assert frame.texture.size == (6, 3)


def test_missing_file_gives_empty_frame(loader, tmp_path):
    loader.load(str(tmp_path / "nothing.gif"))
    assert loader.frame_count == 0
    assert loader.size is None
    assert loader.frame(0) == AnimationFrame()


@pytest.mark.parametrize("number", [-1, 3, 10])
def test_out_of_range_frame_raises(loader, gif_path, number):
    loader.load(gif_path)
    with pytest.raises(IndexError):
        loader.frame(number)


def test_loading_same_file_keeps_frames(loader, gif_path):
    loader.load(gif_path)
    first = loader.frame(0)
    loader.load(gif_path)
    assert loader.frame(0) is first


def test_switching_files_replaces_frames(loader, gif_path, png_path):
    loader.load(gif_path)
    loader.frame(2)
    loader.load(png_path)
    assert loader.frame_count == 1
    assert loader.frame(0).texture.getpixel((0, 0)) == (10, 20, 30, 255)


def test_custom_executor_and_stop(gif_path):
    with ThreadPoolExecutor(max_workers=1) as executor:
        instance = AnimationLoader(executor)
        instance.load(gif_path)
        last = instance.frame(len(COLORS) - 1)
        instance.stop_loading()
        assert last.duration == DURATIONS[-1]
        assert instance.frame(0).duration == DURATIONS[0]