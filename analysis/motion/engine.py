"""Frame-differencing motion estimator.

Consumes small `common.frame.Frame` objects (RGB, already downscaled to
`MotionConfig.width` x `MotionConfig.height`) and produces a scalar motion
score per tick. The estimator owns the previous-frame buffer; nothing else
reads or writes it.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np

from common.frame import Frame

from .model import MotionConfig, MotionResult

_LOG = logging.getLogger(__name__)


def frame_difference_score(
    current: np.ndarray,
    previous: Optional[np.ndarray],
    config: Optional[MotionConfig] = None,
    out: Optional[np.ndarray] = None,
) -> Tuple[float, np.ndarray]:
    """Score `current` against `previous` and return ``(score, new_baseline)``.

    With no `previous` the new baseline is a copy of `current` and the score is
    the sentinel, so the first frame always counts as motion. Otherwise each
    pixel contributes ``|dr| + |dg| + |db|`` when that sum exceeds the noise
    threshold, and the total is normalized by ``width * height * norm_scale``.

    When `out` is given (it may be `previous` itself) the new baseline is
    written into it after scoring and `out` is returned instead of a copy.
    """
    cfg = config or MotionConfig()
    cur = np.asarray(current)[:, :, :3]
    if previous is None:
        score = float(cfg.sentinel_score)
    else:
        prev = np.asarray(previous)[:, :, :3]
        if prev.shape != cur.shape:
            raise ValueError(f"frame shape {cur.shape} does not match baseline {prev.shape}")

        h, w = cur.shape[:2]
        diff = np.abs(cur.astype(np.int16) - prev.astype(np.int16)).sum(axis=2, dtype=np.int64)
        total = int(diff[diff > int(cfg.noise_threshold)].sum())
        score = total / float(w * h) / float(cfg.norm_scale)

    if out is None:
        return score, cur.copy()
    np.copyto(out, cur)
    return score, out


class MotionEstimator:
    """Stateful wrapper around :func:`frame_difference_score`.

    The stored baseline is overwritten in place after each scored frame and
    released by :meth:`reset` (manual reset or blackout exit), after which the
    next frame re-seeds it and scores as the sentinel.
    """

    def __init__(self, config: Optional[MotionConfig] = None) -> None:
        self._cfg = config or MotionConfig()
        self._baseline: Optional[np.ndarray] = None

    @property
    def config(self) -> MotionConfig:
        return self._cfg

    @property
    def baseline(self) -> Optional[np.ndarray]:
        return self._baseline

    def score(
        self, frame: Frame, previous: Optional[np.ndarray]
    ) -> Tuple[float, np.ndarray]:
        """Pure scoring of `frame` against an explicit `previous` buffer."""
        return frame_difference_score(frame.img, previous, self._cfg)

    def reset(self) -> None:
        self._baseline = None

    def step(self, frame: Optional[Frame]) -> Optional[MotionResult]:
        """Score one frame against the stored baseline.

        Returns None ("no signal") when the frame is missing or has no pixels;
        the baseline is left untouched in that case.
        """
        img = getattr(frame, "img", None)
        if (
            frame is None
            or img is None
            or not hasattr(img, "ndim")
            or img.ndim != 3
            or img.shape[0] == 0
            or img.shape[1] == 0
            or img.shape[2] < 3
        ):
            return None

        baseline = self._baseline
        if baseline is not None and baseline.shape != img[:, :, :3].shape:
            _LOG.debug(
                "Frame shape changed %s -> %s; re-seeding motion baseline",
                baseline.shape,
                img.shape,
            )
            baseline = None

        # Existing baseline is reused as the output buffer (overwritten in place).
        score, self._baseline = frame_difference_score(img, baseline, self._cfg, out=baseline)

        return MotionResult(
            score=score,
            pts_ms=float(frame.pts_ms),
            frame_id=int(frame.frame_id),
            baseline_seeded=baseline is None,
        )
