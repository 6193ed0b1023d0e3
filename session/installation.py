"""One installation session: the per-tick pipeline and its owned state.

sampler -> motion estimator -> presence machine -> (gate) -> mosaic + HUD

Ticks are synchronous and never overlap; the clock is read once per tick.
Commands (start, mirror toggle, reset) mutate the same context between ticks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from analysis.motion import MotionConfig, MotionEstimator
from analysis.presence import PresenceState, PresenceStateMachine
from capture.sampler import FrameSampler, FrameUnavailable, downscale
from common.config import InstallationConfig
from common.frame import Frame
from common.time import monotonic_ms
from render.display import Display
from render.glyphs import GlyphMapper
from render.hud import HUD_RESET, format_hud
from render.layout import MosaicLayout
from render.mosaic import MosaicRenderer

_LOG = logging.getLogger(__name__)


@dataclass
class TickOutcome:
    state: PresenceState
    rendered: bool
    hud_text: str
    score: Optional[float] = None
    accumulated_ms: float = 0.0
    color_unlocked: bool = False


@dataclass
class SessionContext:
    """Everything a tick mutates. Created per session, cleared by reset()."""

    estimator: MotionEstimator
    presence: PresenceStateMachine
    mirror: bool = True
    started: bool = False
    hud_text: str = HUD_RESET
    last_outcome: Optional[TickOutcome] = field(default=None, repr=False)


class InstallationSession:
    def __init__(
        self,
        sampler: FrameSampler,
        display: Display,
        config: Optional[InstallationConfig] = None,
        motion_config: Optional[MotionConfig] = None,
        mirror: bool = True,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self._cfg = (config or InstallationConfig()).validate()
        self._motion_cfg = motion_config or MotionConfig()
        self._sampler = sampler
        self._display = display
        self._clock = clock
        self._renderer = MosaicRenderer(
            GlyphMapper(self._cfg.grayscale_palette, self._cfg.color_palette)
        )
        self.ctx = SessionContext(
            estimator=MotionEstimator(self._motion_cfg),
            presence=PresenceStateMachine(self._cfg),
            mirror=mirror,
        )

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> InstallationConfig:
        return self._cfg

    @property
    def state(self) -> PresenceState:
        return self.ctx.presence.state

    @property
    def mirror(self) -> bool:
        return self.ctx.mirror

    def start(self, now_ms: Optional[float] = None) -> None:
        """Start capture once; later calls are no-ops."""
        if self.ctx.started:
            return
        self._sampler.start()
        now = self._clock() if now_ms is None else now_ms
        self.ctx.presence.start(now)
        self.ctx.started = True
        _LOG.info(
            "Session started (goal %.0f ms, hold %.0f ms, blackout %.0f ms, mirror %s)",
            self._cfg.goal_ms,
            self._cfg.presence_hold_ms,
            self._cfg.blackout_ms,
            "on" if self.ctx.mirror else "off",
        )

    def toggle_mirror(self) -> bool:
        self.ctx.mirror = not self.ctx.mirror
        _LOG.info("Mirror %s", "on" if self.ctx.mirror else "off")
        return self.ctx.mirror

    def reset(self) -> None:
        """Manual reset: zero presence time, drop the motion baseline, end blackout."""
        self.ctx.presence.reset()
        self.ctx.estimator.reset()
        self.ctx.last_outcome = None
        self._show_blank()
        _LOG.info("Session reset")

    def close(self) -> None:
        if self.ctx.started:
            self._sampler.close()
            self.ctx.started = False

    def __enter__(self) -> InstallationSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Tick
    # ------------------------------------------------------------------ #

    def layout(self) -> MosaicLayout:
        width, height = self._display.surface_size()
        return MosaicLayout.for_surface(
            width, height, self._cfg.cell_size, min_grid=self._cfg.min_grid
        )

    def _show_blank(self) -> None:
        self._display.blank()
        self._display.set_hud_text(HUD_RESET)
        self._display.present()
        self.ctx.hud_text = HUD_RESET

    def _blank_outcome(self, score: Optional[float] = None) -> TickOutcome:
        self._show_blank()
        presence = self.ctx.presence
        return TickOutcome(
            state=presence.state,
            rendered=False,
            hud_text=HUD_RESET,
            score=score,
            accumulated_ms=presence.accumulated_ms,
        )

    def _sample(self, layout: MosaicLayout) -> tuple[Optional[Frame], Optional[Frame]]:
        """Motion-size and grid-size views of one capture, or (None, None)."""
        raw = self._sampler.sample()
        if raw is None:
            _LOG.debug("No frame available")
            return None, None
        try:
            small = downscale(raw, self._motion_cfg.width, self._motion_cfg.height)
            grid = downscale(raw, layout.cols, layout.rows)
        except FrameUnavailable as exc:
            _LOG.debug("Frame unusable: %s", exc)
            return None, None
        return small, grid

    def tick(self, now_ms: Optional[float] = None) -> TickOutcome:
        now = self._clock() if now_ms is None else now_ms
        ctx = self.ctx
        presence = ctx.presence

        if not ctx.started:
            outcome = self._blank_outcome()
            ctx.last_outcome = outcome
            return outcome

        if presence.in_blackout:
            update = presence.update(now, None)
            if update.clear_baseline:
                ctx.estimator.reset()
            outcome = self._blank_outcome()
            ctx.last_outcome = outcome
            return outcome

        layout = self.layout()
        small, grid = self._sample(layout)
        motion = ctx.estimator.step(small) if small is not None else None
        score = motion.score if motion is not None else None

        update = presence.update(now, score)
        if update.clear_baseline:
            ctx.estimator.reset()
        if not update.render or grid is None:
            outcome = self._blank_outcome(score)
            ctx.last_outcome = outcome
            return outcome

        try:
            self._renderer.render(
                self._display, grid, layout, update.color_unlocked, mirror=ctx.mirror
            )
        except FrameUnavailable as exc:
            _LOG.debug("Mosaic render skipped: %s", exc)
            outcome = self._blank_outcome(score)
            ctx.last_outcome = outcome
            return outcome

        hud = format_hud(update.accumulated_ms, score)
        self._display.set_hud_text(hud)
        self._display.present()
        ctx.hud_text = hud

        outcome = TickOutcome(
            state=update.state,
            rendered=True,
            hud_text=hud,
            score=score,
            accumulated_ms=update.accumulated_ms,
            color_unlocked=update.color_unlocked,
        )
        ctx.last_outcome = outcome
        return outcome
