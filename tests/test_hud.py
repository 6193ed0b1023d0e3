from __future__ import annotations

from render.hud import HUD_RESET, format_hud


def test_reset_string():
    assert HUD_RESET == "00:00 · motion 0.00"
    assert format_hud(0, 0.0) == HUD_RESET


def test_minutes_and_seconds_are_zero_padded_and_truncated():
    assert format_hud(999, 0.5) == "00:00 · motion 0.50"
    assert format_hud(61_500, 1.234) == "01:01 · motion 1.23"
    assert format_hud(3_600_000, 0.0) == "60:00 · motion 0.00"


def test_sentinel_score_is_shown_as_is():
    assert format_hud(16, 999.0) == "00:00 · motion 999.00"
