"""Public exports for the motion analysis package."""

from __future__ import annotations

from .engine import MotionEstimator, frame_difference_score
from .model import MotionConfig, MotionResult

__all__ = [
    "MotionEstimator",
    "MotionResult",
    "MotionConfig",
    "frame_difference_score",
]
