import pytest

from courtkit.clock import CountdownClock, format_remaining


class FakeTime:
    def __init__(self):
        self.value = 1_000_000

    def __call__(self):
        return self.value


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def clock(fake_time):
    return CountdownClock(now=fake_time)


def test_format_zero():
    assert format_remaining(0) == "00:00:00.000"


def test_format_negative_is_zero():
    assert format_remaining(-500) == "00:00:00.000"


def test_format_fields():
    assert format_remaining(3_723_004) == "01:02:03.004"


def test_format_wraps_after_a_day():
    assert format_remaining(86_400_000 + 1500) == format_remaining(1500)


def test_start_makes_active(clock):
    clock.start(5000)
    assert clock.active() is True


def test_pause_keeps_text(clock, fake_time):
    clock.start(5000)
    fake_time.value += 1000
    text = clock.tick()
    clock.pause()
    assert clock.active() is False
    assert clock.text == text


def test_stop_resets_text(clock):
    clock.start(5000)
    clock.stop()
    assert clock.active() is False
    assert clock.text == "00:00:00.000"


def test_tick_counts_down(clock, fake_time):
    clock.start(10_000)
    fake_time.value += 4000
    assert clock.tick() == format_remaining(6000)


def test_tick_stops_at_target(clock, fake_time):
    clock.start(1000)
    fake_time.value += 1000
    assert clock.tick() == "00:00:00.000"
    assert clock.active() is False


def test_tick_inactive_does_nothing(clock, fake_time):
    clock.set(1000, True)
    before = clock.text
    fake_time.value += 500
    assert clock.tick() == before


def test_set_without_update_leaves_text(clock):
    clock.set(2000)
    assert clock.text == ""


def test_set_with_update(clock):
    clock.set(2000, True)
    assert clock.text == format_remaining(2000)


def test_skip_moves_target(clock):
    clock.set(10_000)
    clock.skip(3000)
    assert clock.remaining() == 7000
    assert clock.text == format_remaining(7000)


def test_skip_past_target_shows_zero(clock):
    clock.set(1000)
    clock.skip(5000)
    assert clock.text == "00:00:00.000"