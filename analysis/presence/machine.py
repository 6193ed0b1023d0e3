"""Presence / blackout state machine.

Consumes one motion score per tick and keeps:

- a hysteresis window (`presence_hold_ms`): motion only has to happen within
  the window to keep presence alive, so a still frame does not flicker the
  state;
- a blackout cooldown (`blackout_ms`) entered whenever presence goes stale,
  which zeroes the accumulated presence time before a new session can start;
- the accumulated presence time that gates the color unlock (`goal_ms`).

All timing is timestamp arithmetic on the tick clock; there are no timers.
"""

from __future__ import annotations

import logging
from typing import Optional

from common.config import InstallationConfig

from .model import PresenceContext, PresenceState, PresenceUpdate

_LOG = logging.getLogger(__name__)


class PresenceStateMachine:
    def __init__(self, config: Optional[InstallationConfig] = None) -> None:
        self._cfg = config or InstallationConfig()
        self._ctx = PresenceContext()
        self._unlock_logged = False

    # ------------------------------------------------------------------ #
    # Read-only views
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> PresenceState:
        return self._ctx.state

    @property
    def accumulated_ms(self) -> float:
        return self._ctx.accumulated_ms

    @property
    def last_motion_ms(self) -> Optional[float]:
        return self._ctx.last_motion_ms

    @property
    def blackout_start_ms(self) -> Optional[float]:
        return self._ctx.blackout_start_ms

    @property
    def in_blackout(self) -> bool:
        return self._ctx.state is PresenceState.BLACKOUT

    @property
    def color_unlocked(self) -> bool:
        return self._ctx.accumulated_ms >= self._cfg.goal_ms

    def presence_valid(self, now_ms: float) -> bool:
        last = self._ctx.last_motion_ms
        return last is not None and (now_ms - last) <= self._cfg.presence_hold_ms

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    def start(self, now_ms: float) -> None:
        """Idle -> Absent; the first tick's elapsed time is measured from here."""
        if self._ctx.state is not PresenceState.IDLE:
            return
        self._ctx.state = PresenceState.ABSENT
        self._ctx.last_tick_ms = now_ms

    def reset(self) -> None:
        """Manual reset: drop accumulated time, motion history and any blackout."""
        ctx = self._ctx
        ctx.accumulated_ms = 0.0
        ctx.last_motion_ms = None
        ctx.blackout_start_ms = None
        if ctx.state is not PresenceState.IDLE:
            ctx.state = PresenceState.ABSENT
        self._unlock_logged = False

    # ------------------------------------------------------------------ #
    # Tick
    # ------------------------------------------------------------------ #

    def _elapsed_ms(self, now_ms: float) -> float:
        last = self._ctx.last_tick_ms
        if last is None:
            return float(self._cfg.nominal_frame_ms)
        dt = now_ms - last
        if dt <= 0:
            return float(self._cfg.nominal_frame_ms)
        return float(dt)

    def _blank(self, **flags: bool) -> PresenceUpdate:
        return PresenceUpdate(
            state=self._ctx.state,
            render=False,
            accumulated_ms=self._ctx.accumulated_ms,
            **flags,
        )

    def _enter_blackout(self, now_ms: float) -> None:
        ctx = self._ctx
        _LOG.info(
            "Presence lost after %.0f ms; blackout for %.0f ms",
            ctx.accumulated_ms,
            self._cfg.blackout_ms,
        )
        ctx.accumulated_ms = 0.0
        ctx.state = PresenceState.BLACKOUT
        ctx.blackout_start_ms = now_ms
        self._unlock_logged = False

    def _exit_blackout(self) -> None:
        ctx = self._ctx
        ctx.state = PresenceState.ABSENT
        ctx.blackout_start_ms = None
        ctx.last_motion_ms = None
        _LOG.info("Blackout over; waiting for motion")

    def update(self, now_ms: float, score: Optional[float]) -> PresenceUpdate:
        """Advance one tick.

        `score` is the tick's motion score, or None when the camera had no
        frame. While in blackout the score is ignored.
        """
        ctx = self._ctx
        if ctx.state is PresenceState.IDLE:
            return self._blank()

        dt = self._elapsed_ms(now_ms)
        ctx.last_tick_ms = now_ms

        if ctx.state is PresenceState.BLACKOUT:
            start = ctx.blackout_start_ms if ctx.blackout_start_ms is not None else now_ms
            if now_ms - start >= self._cfg.blackout_ms:
                self._exit_blackout()
                return self._blank(clear_baseline=True, exited_blackout=True)
            return self._blank()

        if score is None:
            return self._blank()

        if score >= self._cfg.motion_threshold:
            ctx.last_motion_ms = now_ms

        if not self.presence_valid(now_ms):
            self._enter_blackout(now_ms)
            return self._blank(entered_blackout=True)

        if ctx.state is not PresenceState.PRESENT:
            _LOG.info("Presence detected (score %.2f)", score)
        ctx.state = PresenceState.PRESENT
        ctx.accumulated_ms += dt

        unlocked = self.color_unlocked
        if unlocked and not self._unlock_logged:
            _LOG.info("Color unlocked after %.0f ms of presence", ctx.accumulated_ms)
            self._unlock_logged = True

        return PresenceUpdate(
            state=ctx.state,
            render=True,
            accumulated_ms=ctx.accumulated_ms,
            color_unlocked=unlocked,
        )
