from __future__ import annotations

from dataclasses import dataclass


@dataclass
class MotionResult:
    """
    Per-tick output of the motion estimator.

    `score` is the normalized frame-difference magnitude (roughly 0..few for
    real scenes), or the sentinel value when this frame only seeded the
    baseline.
    """

    score: float
    pts_ms: float  # capture timestamp of the scored frame
    frame_id: int
    baseline_seeded: bool = False  # True when no previous frame existed


@dataclass(frozen=True)
class MotionConfig:
    """
    Constants for frame differencing.

    Frames are compared at a fixed small resolution so the score does not
    depend on the camera's native size.
    """

    width: int = 160
    height: int = 120

    # Per-pixel |dr|+|dg|+|db| at or below this is treated as sensor noise.
    noise_threshold: int = 12

    # score = sum / (width * height) / norm_scale
    norm_scale: float = 18.0

    # Returned when there is no baseline yet; always counts as motion.
    sentinel_score: float = 999.0
