from __future__ import annotations

HUD_RESET = "00:00 · motion 0.00"


def format_hud(accumulated_ms: float, score: float) -> str:
    """`MM:SS · motion X.XX` from accumulated presence time and the last score."""
    seconds_total = int(max(0.0, accumulated_ms) // 1000)
    minutes, seconds = divmod(seconds_total, 60)
    return f"{minutes:02d}:{seconds:02d} · motion {score:.2f}"
