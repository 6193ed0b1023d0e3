from __future__ import annotations

import argparse
import contextlib
import logging
import signal
import time
from collections import deque
from dataclasses import replace
from typing import Any, Deque, Dict, Optional

from capture.nonblocking_adapter import wrap_nonblocking
from capture.reader import ReaderConfig, ReaderFactory
from capture.sampler import FrameSampler
from common.config import InstallationConfig, load_config
from common.time import monotonic_ms
from render.display import GridDisplay, TerminalDisplay
from session import InstallationSession

_LOG = logging.getLogger(__name__)


def _parse_surface(value: str) -> tuple[int, int]:
    try:
        w, h = value.lower().split("x", 1)
        size = (int(w), int(h))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {value!r}") from exc
    if size[0] <= 0 or size[1] <= 0:
        raise argparse.ArgumentTypeError(f"surface must be positive, got {value!r}")
    return size


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Run the presence-gated glyph mosaic installation.",
    )
    ap.add_argument(
        "--prefer",
        type=str,
        choices=["camera", "null"],
        default="camera",
        help='Frame source ("camera" for a webcam, "null" for synthetic frames).',
    )
    ap.add_argument("--device", type=int, default=0, help="Camera device index.")
    ap.add_argument("--capture-width", type=int, default=640, help="Requested capture width.")
    ap.add_argument("--capture-height", type=int, default=480, help="Requested capture height.")
    ap.add_argument(
        "--null-pattern",
        type=str,
        choices=["black", "noise"],
        default="noise",
        help="Synthetic frame content when --prefer null.",
    )
    ap.add_argument("--fps", type=float, default=30.0, help="Tick rate of the render loop.")
    ap.add_argument(
        "--max-seconds",
        type=float,
        default=0,
        help="If > 0, stop after this many seconds; otherwise run until Ctrl+C.",
    )
    ap.add_argument(
        "--display",
        type=str,
        choices=["terminal", "none"],
        default="terminal",
        help='Where to draw the mosaic ("none" keeps it in memory only).',
    )
    ap.add_argument(
        "--surface",
        type=_parse_surface,
        default=(640, 480),
        help="Surface size WIDTHxHEIGHT for --display none.",
    )

    # Presence / mosaic tuning (defaults come from the config module)
    ap.add_argument("--goal-ms", type=float, default=None, help="Presence time to unlock color.")
    ap.add_argument(
        "--motion-threshold",
        type=float,
        default=None,
        help="Motion score that counts as presence.",
    )
    ap.add_argument(
        "--presence-hold-ms",
        type=float,
        default=None,
        help="Allowed still time before presence is lost.",
    )
    ap.add_argument(
        "--blackout-ms",
        type=float,
        default=None,
        help="Cooldown after presence is lost.",
    )
    ap.add_argument("--cell-size", type=int, default=None, help="Mosaic cell size in pixels.")
    ap.add_argument(
        "--config-module",
        type=str,
        default=None,
        help="Python module with GOAL_MS-style overrides (else $MOSAIC_CONFIG_MODULE).",
    )
    ap.add_argument("--no-mirror", action="store_true", help="Start with mirroring off.")

    ap.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    ap.add_argument("--log-file", type=str, default=None, help="Write logs to this file.")
    return ap


def config_from_args(args: argparse.Namespace) -> InstallationConfig:
    cfg = load_config(args.config_module)
    overrides = {
        "goal_ms": args.goal_ms,
        "motion_threshold": args.motion_threshold,
        "presence_hold_ms": args.presence_hold_ms,
        "blackout_ms": args.blackout_ms,
        "cell_size": args.cell_size,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        cfg = replace(cfg, **overrides)
    return cfg.validate()


def _install_command_signals(commands: Deque[str]) -> Dict[int, Any]:
    """SIGUSR1 -> reset, SIGUSR2 -> toggle mirror (POSIX only).

    Returns the handlers that were replaced, for _restore_signals().
    """
    previous: Dict[int, Any] = {}
    for name, command in (("SIGUSR1", "reset"), ("SIGUSR2", "mirror")):
        signum = getattr(signal, name, None)
        if signum is None:
            continue
        previous[signum] = signal.signal(signum, lambda *_a, _c=command: commands.append(_c))
    return previous


def _restore_signals(previous: Dict[int, Any]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler if handler is not None else signal.SIG_DFL)


def main(argv: Optional[list[str]] = None) -> int:
    ap = build_arg_parser()
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        filename=args.log_file,
    )

    cfg = config_from_args(args)

    # ------------------------------------------------------------------ capture

    reader_cfg = ReaderConfig(
        prefer=args.prefer,
        device=args.device,
        width=args.capture_width,
        height=args.capture_height,
        null_pattern=args.null_pattern,
    )
    reader = wrap_nonblocking(
        ReaderFactory.from_config(reader_cfg),
        queue_max=2,
        drop_policy="drop_old",
        start_timeout_s=6.0,
        close_timeout_s=0.75,
    )
    sampler = FrameSampler(reader)

    # ------------------------------------------------------------------ display

    if args.display == "terminal":
        display = TerminalDisplay(cell_size=cfg.cell_size)
    else:
        display = GridDisplay(*args.surface)

    commands: Deque[str] = deque()
    previous_handlers = _install_command_signals(commands)

    # ------------------------------------------------------------------ main loop

    period_ms = 1000.0 / max(args.fps, 0.001)
    session = InstallationSession(sampler, display, config=cfg, mirror=not args.no_mirror)
    t0 = monotonic_ms()
    ticks = 0
    with session:
        try:
            session.start()
            while True:
                while commands:
                    cmd = commands.popleft()
                    if cmd == "reset":
                        session.reset()
                    elif cmd == "mirror":
                        session.toggle_mirror()

                tick_start = monotonic_ms()
                session.tick(tick_start)
                ticks += 1

                if args.max_seconds > 0 and (tick_start - t0) >= args.max_seconds * 1000.0:
                    _LOG.info("Reached max-seconds=%s, exiting loop.", args.max_seconds)
                    break

                sleep_ms = period_ms - (monotonic_ms() - tick_start)
                if sleep_ms > 0:
                    time.sleep(sleep_ms / 1000.0)
        except KeyboardInterrupt:
            _LOG.info("KeyboardInterrupt received, shutting down.")
        finally:
            _restore_signals(previous_handlers)
            if isinstance(display, TerminalDisplay):
                with contextlib.suppress(Exception):
                    display.close()

    _LOG.info("Ran %d ticks; final state %s", ticks, session.state.value)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
