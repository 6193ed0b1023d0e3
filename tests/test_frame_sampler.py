from __future__ import annotations

import logging
from collections import deque

import numpy as np
import pytest

from capture.reader import NullTransport, ReaderConfig, ReaderFactory
from capture.sampler import FrameSampler, FrameUnavailable, downscale
from common.frame import Frame


class ScriptedStream:
    """FrameStream fake: returns queued items, then None."""

    def __init__(self, items=()):
        self.items = deque(items)
        self.started = 0
        self.closed = 0

    def start(self):
        self.started += 1

    def read(self):
        return self.items.popleft() if self.items else None

    def close(self):
        self.closed += 1


def _img(value: int, w: int = 64, h: int = 48) -> np.ndarray:
    return np.full((h, w, 3), value, dtype=np.uint8)


def test_no_signal_before_start_and_before_first_frame():
    stream = ScriptedStream([(_img(1), 1000.0, 0)])
    sampler = FrameSampler(stream, max_age_ms=None)
    assert sampler.sample() is None

    sampler.start()
    sampler.start()
    assert stream.started == 1

    assert sampler.sample().frame_id == 0


def test_sample_keeps_freshest_frame_and_holds_it():
    stream = ScriptedStream([(_img(1), 1000.0, 0), (_img(2), 1033.0, 1), (_img(3), 1066.0, 2)])
    sampler = FrameSampler(stream, max_age_ms=None)
    sampler.start()

    f = sampler.sample()
    assert f.frame_id == 2
    assert int(f.img[0, 0, 0]) == 3

    # Nothing new queued: the held frame is returned again.
    assert sampler.sample().frame_id == 2


def test_sample_returns_private_copy():
    stream = ScriptedStream([(_img(7), 1000.0, 0)])
    sampler = FrameSampler(stream, max_age_ms=None)
    sampler.start()

    first = sampler.sample()
    first.img[:] = 0
    assert int(sampler.sample().img[0, 0, 0]) == 7


def test_stale_and_empty_frames_are_no_signal():
    clock = {"now": 1000.0}
    stream = ScriptedStream([(np.zeros((0, 0, 3), dtype=np.uint8), 1000.0, 0)])
    sampler = FrameSampler(stream, max_age_ms=500.0, clock=lambda: clock["now"])
    sampler.start()
    assert sampler.sample() is None

    stream.items.append((_img(5), 1000.0, 1))
    assert sampler.sample() is not None
    clock["now"] = 1600.0
    assert sampler.sample() is None


def test_downscale_resizes_and_preserves_identity():
    f = Frame(img=_img(90, w=640, h=480), pts_ms=12.0, frame_id=4)
    small = downscale(f, 160, 120)
    assert small.img.shape == (120, 160, 3)
    assert small.img.dtype == np.uint8
    assert int(small.img[10, 10, 1]) == 90
    assert (small.pts_ms, small.frame_id) == (12.0, 4)


def test_downscale_rejects_unusable_frames():
    with pytest.raises(FrameUnavailable):
        downscale(Frame(img=np.zeros((0, 0, 3), dtype=np.uint8), pts_ms=0.0, frame_id=0), 16, 12)
    with pytest.raises(FrameUnavailable):
        downscale(Frame(img=_img(1), pts_ms=0.0, frame_id=0), 0, 12)


def test_get_downscaled_frame():
    stream = ScriptedStream([(_img(30, w=320, h=240), 1000.0, 0)])
    sampler = FrameSampler(stream, max_age_ms=None)
    assert sampler.get_downscaled_frame(160, 120) is None

    sampler.start()
    out = sampler.get_downscaled_frame(160, 120)
    assert out.img.shape == (120, 160, 3)


def test_close_drops_held_frame():
    stream = ScriptedStream([(_img(1), 1000.0, 0)])
    sampler = FrameSampler(stream, max_age_ms=None)
    sampler.start()
    assert sampler.sample() is not None
    sampler.close()
    assert stream.closed == 1
    assert sampler.sample() is None


def test_null_transport_patterns():
    black = ReaderFactory.from_config(ReaderConfig(prefer="null", width=32, height=24))
    assert isinstance(black, NullTransport)
    assert black.read() is None  # not started
    black.start()
    img, pts_ms, fid = black.read()
    assert img.shape == (24, 32, 3) and not img.any()
    assert fid == 0 and pts_ms > 0

    noise = NullTransport(width=32, height=24, pattern="noise", seed=1)
    noise.start()
    img, _, _ = noise.read()
    assert img.any()


def test_unknown_backend_is_rejected():
    with pytest.raises(ValueError):
        ReaderFactory.from_config(ReaderConfig(prefer="shm"))


def test_start_failure_leaves_sampler_without_signal(caplog):
    class Unopenable(ScriptedStream):
        def start(self):
            raise RuntimeError("Could not open camera device 3")

    stream = Unopenable([(_img(5), 1000.0, 0)])
    sampler = FrameSampler(stream, max_age_ms=None)

    with caplog.at_level(logging.WARNING, logger="capture.sampler"):
        assert sampler.start() is False
    assert "Could not open camera device 3" in caplog.text
    assert not sampler.running
    assert sampler.sample() is None
    assert sampler.get_downscaled_frame(16, 12) is None
    sampler.close()
    assert stream.closed == 1
