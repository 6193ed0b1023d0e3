from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Literal, Optional, Protocol, Tuple

import cv2
import numpy as np

_LOG = logging.getLogger(__name__)

DropPolicy = Literal["drop_new", "drop_old"]
NullPattern = Literal["black", "noise"]


class FrameStream(Protocol):
    def start(self) -> None: ...
    def read(self) -> Optional[Tuple[np.ndarray, float, int]]: ...  # (frame_rgb, pts_ms, frame_id)
    def close(self) -> None: ...


class NullTransport:
    """A tiny source that synthesizes frames. Useful for tests/dev and headless runs.

    ``pattern="black"`` yields still black frames (no motion after the first
    one); ``pattern="noise"`` yields uniform random frames, which score well
    above the default motion threshold.
    """

    def __init__(
        self,
        width: int = 640,
        height: int = 480,
        fps: float = 30.0,
        pattern: NullPattern = "black",
        seed: Optional[int] = None,
    ):
        self.width, self.height, self.fps = width, height, fps
        self.pattern = pattern
        self._rng = np.random.default_rng(seed)
        self._running = False
        self._next_ts = 0.0
        self._frame_id = 0

    def start(self) -> None:
        self._running = True
        self._next_ts = time.time() * 1000.0

    def read(self) -> Optional[Tuple[np.ndarray, float, int]]:
        if not self._running:
            return None
        now_ms = time.time() * 1000.0
        if now_ms < self._next_ts:
            return None
        if self.pattern == "noise":
            frame = self._rng.integers(0, 256, size=(self.height, self.width, 3), dtype=np.uint8)
        else:
            frame = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        fid = self._frame_id
        self._frame_id += 1
        self._next_ts += 1000.0 / max(self.fps, 0.001)
        return frame, now_ms, fid

    def close(self) -> None:
        self._running = False


class CameraTransport:
    """OpenCV ``VideoCapture`` source; frames are converted BGR -> RGB.

    ``read()`` blocks until the driver hands over the next frame, so wrap it
    with :func:`capture.nonblocking_adapter.wrap_nonblocking` before using it
    from the tick loop.
    """

    def __init__(self, device: int = 0, width: int = 640, height: int = 480) -> None:
        self.device = device
        self.width, self.height = width, height
        self._cap: Optional[cv2.VideoCapture] = None
        self._frame_id = 0

    def start(self) -> None:
        if self._cap is not None:
            return
        cap = cv2.VideoCapture(int(self.device))
        if not cap.isOpened():
            cap.release()
            raise RuntimeError(f"Could not open camera device {self.device}")
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, float(self.width))
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, float(self.height))
        _LOG.info(
            "Camera %s opened (requested %dx%d, got %dx%d)",
            self.device,
            self.width,
            self.height,
            int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )
        self._cap = cap

    def read(self) -> Optional[Tuple[np.ndarray, float, int]]:
        if self._cap is None:
            return None
        ok, frame_bgr = self._cap.read()
        if not ok or frame_bgr is None or frame_bgr.size == 0:
            return None
        frame = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        fid = self._frame_id
        self._frame_id += 1
        return frame, time.time() * 1000.0, fid

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None


# --- Discovery ---------------------------------------------------------------


@dataclass
class ReaderConfig:
    prefer: str = "camera"  # or "null"
    device: int = 0
    width: int = 640
    height: int = 480
    fps: float = 30.0  # only used by the null transport
    null_pattern: NullPattern = "black"


class ReaderFactory:
    @staticmethod
    def from_config(cfg: ReaderConfig) -> FrameStream:
        if cfg.prefer == "null":
            return NullTransport(
                width=cfg.width, height=cfg.height, fps=cfg.fps, pattern=cfg.null_pattern
            )
        if cfg.prefer == "camera":
            return CameraTransport(device=cfg.device, width=cfg.width, height=cfg.height)
        raise ValueError(f"Unknown reader backend {cfg.prefer!r} (expected 'camera' or 'null')")
