"""Frame sampling boundary between the camera and the per-tick core.

The tick loop asks for "the current frame"; the sampler answers with the most
recent capture or ``None`` ("no signal") and never blocks. One tick takes a
single :meth:`FrameSampler.sample` and derives every downscaled view from it,
so motion scoring and mosaic cells always come from the same capture.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import cv2
import numpy as np

from common.frame import Frame
from common.time import now_ms

from .reader import FrameStream

_LOG = logging.getLogger(__name__)


class FrameUnavailable(RuntimeError):
    """Camera not ready, zero-dimension frame, or a failed read/resize."""


def _valid_image(img: Optional[np.ndarray]) -> bool:
    return (
        img is not None
        and hasattr(img, "ndim")
        and img.ndim == 3
        and img.shape[0] > 0
        and img.shape[1] > 0
        and img.shape[2] >= 3
    )


def downscale(frame: Frame, width: int, height: int) -> Frame:
    """Resize `frame` to `width` x `height` (area interpolation), as a new array.

    Raises FrameUnavailable when the frame has no usable pixels or the target
    size is degenerate.
    """
    if width <= 0 or height <= 0:
        raise FrameUnavailable(f"invalid target size {width}x{height}")
    img = getattr(frame, "img", None)
    if not _valid_image(img):
        raise FrameUnavailable("frame has no pixel data")
    src = np.ascontiguousarray(img[:, :, :3], dtype=np.uint8)
    try:
        small = cv2.resize(src, (int(width), int(height)), interpolation=cv2.INTER_AREA)
    except cv2.error as exc:
        raise FrameUnavailable(f"resize to {width}x{height} failed: {exc}") from exc
    return Frame(img=small, pts_ms=frame.pts_ms, frame_id=frame.frame_id)


class FrameSampler:
    """Keeps the latest frame from a non-blocking FrameStream.

    Parameters
    ----------
    stream:
        Source of ``(frame_rgb, pts_ms, frame_id)`` tuples; ``read()`` must not
        block (see ``capture.nonblocking_adapter``).
    max_age_ms:
        A held frame older than this is treated as "no signal" (unplugged or
        stalled camera). ``None`` disables the check.
    clock:
        Epoch-ms clock matching the stream's ``pts_ms``.
    """

    def __init__(
        self,
        stream: FrameStream,
        max_age_ms: Optional[float] = 1000.0,
        clock: Callable[[], float] = now_ms,
    ) -> None:
        self._stream = stream
        self._max_age_ms = max_age_ms
        self._clock = clock
        self._latest: Optional[Frame] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> bool:
        """Start the stream; returns False when the camera could not be started.

        A failed start is not fatal: the sampler stays stopped and every
        sample() reports no signal.
        """
        if self._running:
            return True
        try:
            self._stream.start()
        except Exception as exc:
            _LOG.warning("Frame source failed to start (%s); running without frames", exc)
            return False
        self._running = True
        return True

    def close(self) -> None:
        self._running = False
        self._latest = None
        self._stream.close()

    def _drain(self) -> None:
        # Keep only the freshest frame the stream has ready.
        while True:
            try:
                item = self._stream.read()
            except Exception:
                _LOG.debug("Frame stream read failed", exc_info=True)
                return
            if item is None:
                return
            img, pts_ms, frame_id = item
            if not _valid_image(img):
                continue
            self._latest = Frame(img=img, pts_ms=float(pts_ms), frame_id=int(frame_id))

    def sample(self) -> Optional[Frame]:
        """Most recent frame as a private copy, or None when there is no signal."""
        if not self._running:
            return None
        self._drain()
        latest = self._latest
        if latest is None:
            return None
        if self._max_age_ms is not None and self._clock() - latest.pts_ms > self._max_age_ms:
            return None
        return Frame(img=latest.img.copy(), pts_ms=latest.pts_ms, frame_id=latest.frame_id)

    def get_downscaled_frame(self, width: int, height: int) -> Optional[Frame]:
        frame = self.sample()
        if frame is None:
            return None
        try:
            return downscale(frame, width, height)
        except FrameUnavailable:
            _LOG.debug("Downscale to %dx%d failed", width, height, exc_info=True)
            return None
