from __future__ import annotations

import logging

import numpy as np

from analysis.presence import PresenceState
from capture.sampler import FrameSampler
from common.config import InstallationConfig
from common.frame import Frame
from render.display import GridDisplay
from render.hud import HUD_RESET
from session import InstallationSession


class FakeSampler:
    """Stands in for FrameSampler: hands out `frame` (or None) on every sample()."""

    def __init__(self, frame=None):
        self.frame = frame
        self.started = 0
        self.closed = 0
        self.samples = 0

    def start(self):
        self.started += 1

    def close(self):
        self.closed += 1

    def sample(self):
        self.samples += 1
        if self.frame is None:
            return None
        return Frame(img=self.frame.copy(), pts_ms=0.0, frame_id=self.samples)


def _img(value: int) -> np.ndarray:
    return np.full((48, 64, 3), value, dtype=np.uint8)


def _session(frame=None, **cfg_kw):
    cfg = InstallationConfig(
        goal_ms=cfg_kw.pop("goal_ms", 60_000.0),
        presence_hold_ms=1_500.0,
        blackout_ms=2_000.0,
        cell_size=18,
        **cfg_kw,
    )
    sampler = FakeSampler(frame)
    display = GridDisplay(640, 480)
    return InstallationSession(sampler, display, config=cfg), sampler, display


def test_ticks_before_start_are_blank():
    s, sampler, display = _session(_img(100))
    out = s.tick(0.0)
    assert not out.rendered
    assert out.state is PresenceState.IDLE
    assert out.hud_text == HUD_RESET
    assert display.is_blank
    assert sampler.samples == 0


def test_start_is_idempotent():
    s, sampler, _ = _session(_img(100))
    s.start(0.0)
    s.start(10.0)
    assert sampler.started == 1
    assert s.state is PresenceState.ABSENT


def test_first_frame_counts_as_presence_and_renders_mosaic():
    s, _, display = _session(_img(100))
    s.start(0.0)

    out = s.tick(20.0)

    assert out.rendered
    assert out.state is PresenceState.PRESENT
    assert out.score == 999.0
    assert out.accumulated_ms == 20.0
    assert out.hud_text == "00:00 · motion 999.00"
    assert display.hud_text == out.hud_text
    assert (display.layout.cols, display.layout.rows) == (35, 26)
    assert display.cells[0][0] == ("●", 100)

    out = s.tick(40.0)
    assert out.score == 0.0
    assert out.hud_text == "00:00 · motion 0.00"


def test_stillness_leads_to_blackout_then_fresh_baseline():
    s, sampler, display = _session(_img(100))
    s.start(0.0)
    s.tick(0.0)
    s.tick(1_000.0)
    assert s.state is PresenceState.PRESENT

    out = s.tick(1_501.0)
    assert out.state is PresenceState.BLACKOUT
    assert not out.rendered
    assert out.accumulated_ms == 0.0
    assert display.is_blank
    assert display.hud_text == HUD_RESET

    # Cooldown: the camera is not consulted and nothing renders.
    samples = sampler.samples
    out = s.tick(3_000.0)
    assert out.state is PresenceState.BLACKOUT
    assert sampler.samples == samples

    out = s.tick(3_501.0)
    assert out.state is PresenceState.ABSENT
    assert not out.rendered
    assert s.ctx.estimator.baseline is None

    out = s.tick(3_520.0)
    assert out.rendered
    assert out.score == 999.0
    assert out.state is PresenceState.PRESENT


def test_no_signal_blanks_without_changing_state():
    s, sampler, display = _session(_img(100))
    s.start(0.0)
    s.tick(10.0)
    acc = s.ctx.presence.accumulated_ms

    sampler.frame = None
    out = s.tick(30.0)

    assert not out.rendered
    assert out.state is PresenceState.PRESENT
    assert s.ctx.presence.accumulated_ms == acc
    assert display.is_blank
    assert display.hud_text == HUD_RESET


def test_color_unlocks_after_goal_with_continuous_motion():
    s, sampler, display = _session(_img(0), goal_ms=100.0)
    s.start(0.0)
    outs = []
    for i, t in enumerate(range(25, 250, 25)):
        sampler.frame = _img(255 if i % 2 else 0)
        outs.append(s.tick(float(t)))

    assert not outs[2].color_unlocked  # 75 ms
    assert outs[3].color_unlocked  # 100 ms
    assert all(fill == 255 for row in display.cells for _, fill in row)
    assert outs[-1].hud_text.endswith("motion 42.50")


def test_mirror_toggle_flips_columns():
    img = np.zeros((48, 64, 3), dtype=np.uint8)
    img[:, :32] = 255  # bright left half
    s, _, display = _session(img)
    s.start(0.0)

    s.tick(10.0)
    assert s.mirror
    assert display.cells[5][0][1] == 0
    assert display.cells[5][-1][1] == 255

    assert s.toggle_mirror() is False
    s.tick(20.0)
    assert display.cells[5][0][1] == 255
    assert display.cells[5][-1][1] == 0


def test_manual_reset_clears_everything():
    s, _, display = _session(_img(100))
    s.start(0.0)
    s.tick(0.0)
    s.tick(1_000.0)
    s.tick(1_600.0)
    assert s.ctx.presence.in_blackout

    s.reset()

    assert s.ctx.presence.accumulated_ms == 0.0
    assert s.ctx.estimator.baseline is None
    assert not s.ctx.presence.in_blackout
    assert display.hud_text == HUD_RESET
    assert s.ctx.hud_text == HUD_RESET
    assert display.is_blank

    out = s.tick(1_700.0)
    assert out.rendered and out.score == 999.0


def test_context_manager_closes_sampler():
    s, sampler, _ = _session(_img(1))
    with s:
        s.start(0.0)
    assert sampler.closed == 1


class _UnopenableCamera:
    def start(self):
        raise RuntimeError("Could not open camera device 99")

    def read(self):
        return None

    def close(self):
        pass


def test_camera_that_fails_to_open_ticks_as_no_signal(caplog):
    sampler = FrameSampler(_UnopenableCamera())
    display = GridDisplay(640, 480)
    s = InstallationSession(sampler, display, config=InstallationConfig())

    with caplog.at_level(logging.WARNING):
        s.start(0.0)
    assert any(r.levelno == logging.WARNING for r in caplog.records)

    for t in (16.0, 32.0, 48.0):
        out = s.tick(t)
        assert not out.rendered
        assert out.hud_text == HUD_RESET
        assert out.state is PresenceState.ABSENT
    assert display.is_blank
    s.close()
