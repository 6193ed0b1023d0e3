from __future__ import annotations

import contextlib
import logging
import threading
import time
from collections import deque
from typing import Deque, Optional, Tuple

import numpy as np

from .reader import DropPolicy, FrameStream

_LOG = logging.getLogger(__name__)


class NonBlocking:
    """
    Wrap any FrameStream so that the tick loop never waits on the camera:
      - start() runs inner.start() in a worker thread (bounded wait only)
      - read() pops from a small deque and returns None when nothing is ready
      - close() stops the worker with short timeouts (won't hang)
    """

    def __init__(
        self,
        inner: FrameStream,
        queue_max: int = 2,
        drop_policy: DropPolicy = "drop_old",
        start_timeout_s: float = 2.0,
        close_timeout_s: float = 0.75,
    ):
        self._inner = inner
        self._q: Deque[Tuple[np.ndarray, float, int]] = deque(maxlen=queue_max)
        self._drop = drop_policy
        self._run_ev = threading.Event()
        self._started = threading.Event()
        self._thr: Optional[threading.Thread] = None
        self._start_timeout_s = start_timeout_s
        self._close_timeout_s = close_timeout_s
        self._start_exc: Optional[BaseException] = None

    def start(self) -> None:
        if self._thr and self._thr.is_alive():
            return
        self._start_exc = None
        self._started.clear()
        self._run_ev.set()
        self._thr = threading.Thread(target=self._worker, name="capture-nonblock", daemon=True)
        self._thr.start()
        if not self._started.wait(self._start_timeout_s):
            # The worker may still be opening the device; ticks see "no signal" meanwhile.
            _LOG.warning(
                "Capture start not ready after %.2fs; continuing without frames",
                self._start_timeout_s,
            )

        if self._start_exc is not None:
            raise self._start_exc

    def _worker(self) -> None:
        try:
            try:
                self._inner.start()
            except Exception as exc:
                self._start_exc = exc
            finally:
                self._started.set()

            while self._run_ev.is_set() and self._start_exc is None:
                item = None
                try:
                    item = self._inner.read()
                except Exception:
                    _LOG.debug("Capture read failed", exc_info=True)
                    time.sleep(0.001)
                if item is None:
                    time.sleep(0.001)
                    continue
                if len(self._q) == self._q.maxlen:
                    if self._drop == "drop_old":
                        self._q.popleft()
                        self._q.append(item)
                else:
                    self._q.append(item)
        finally:
            with contextlib.suppress(Exception):
                self._inner.close()

    def read(self) -> Optional[Tuple[np.ndarray, float, int]]:
        if not self._thr or not self._thr.is_alive():
            return None
        if not self._q:
            return None
        return self._q.popleft()

    def close(self) -> None:
        self._run_ev.clear()

        def _closer():
            with contextlib.suppress(Exception):
                self._inner.close()

        t = threading.Thread(target=_closer, name="capture-close", daemon=True)
        t.start()
        t.join(timeout=self._close_timeout_s)
        if self._thr:
            self._thr.join(timeout=0.5)
            self._thr = None


def wrap_nonblocking(
    stream: FrameStream,
    queue_max: int = 2,
    drop_policy: DropPolicy = "drop_old",
    start_timeout_s: float = 2.0,
    close_timeout_s: float = 0.75,
) -> FrameStream:
    return NonBlocking(
        stream,
        queue_max=queue_max,
        drop_policy=drop_policy,
        start_timeout_s=start_timeout_s,
        close_timeout_s=close_timeout_s,
    )
