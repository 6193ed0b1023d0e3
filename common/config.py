# common/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from importlib import import_module
from typing import Any, Optional, Tuple

from .palette import (
    COLOR_PALETTE,
    GRAYSCALE_PALETTE,
    ColorPaletteEntry,
    GrayPaletteEntry,
)

_LOG = logging.getLogger(__name__)

CONFIG_MODULE_ENV = "MOSAIC_CONFIG_MODULE"


class ConfigError(ValueError):
    """Raised once at startup when the installation config is malformed."""


@dataclass(frozen=True)
class InstallationConfig:
    """
    Thresholds and durations for one installation run.

    Supplied at startup and never mutated; use `dataclasses.replace` to
    derive an overridden copy (e.g. from CLI flags).
    """

    goal_ms: float = 60_000.0  # presence needed before color unlocks
    motion_threshold: float = 1.0  # motion score that counts as "present"
    presence_hold_ms: float = 1_500.0  # allowed still time before losing presence
    blackout_ms: float = 2_000.0  # cooldown after presence is lost
    cell_size: int = 18  # mosaic cell size in surface pixels

    # Elapsed time substituted on the first tick or a non-positive delta.
    nominal_frame_ms: float = 16.0
    # Lower bound on mosaic columns/rows regardless of surface size.
    min_grid: int = 12

    grayscale_palette: Tuple[GrayPaletteEntry, ...] = GRAYSCALE_PALETTE
    color_palette: Tuple[ColorPaletteEntry, ...] = COLOR_PALETTE

    def validate(self) -> InstallationConfig:
        """Fail fast on values the tick loop cannot work with."""
        if self.goal_ms < 0:
            raise ConfigError(f"goal_ms must be >= 0, got {self.goal_ms}")
        if self.motion_threshold < 0:
            raise ConfigError(f"motion_threshold must be >= 0, got {self.motion_threshold}")
        if self.presence_hold_ms < 0:
            raise ConfigError(f"presence_hold_ms must be >= 0, got {self.presence_hold_ms}")
        if self.blackout_ms < 0:
            raise ConfigError(f"blackout_ms must be >= 0, got {self.blackout_ms}")
        if self.nominal_frame_ms <= 0:
            raise ConfigError(f"nominal_frame_ms must be > 0, got {self.nominal_frame_ms}")
        if int(self.cell_size) < 1:
            raise ConfigError(f"cell_size must be >= 1, got {self.cell_size}")
        if int(self.min_grid) < 1:
            raise ConfigError(f"min_grid must be >= 1, got {self.min_grid}")

        if not self.grayscale_palette:
            raise ConfigError("grayscale_palette must not be empty")
        for entry in self.grayscale_palette:
            if not 0 <= int(entry.gray) <= 255:
                raise ConfigError(f"gray level out of range for {entry.glyph!r}: {entry.gray}")

        if not self.color_palette:
            raise ConfigError("color_palette must not be empty")
        for entry in self.color_palette:
            if len(entry.rgb) != 3 or any(not 0 <= int(c) <= 255 for c in entry.rgb):
                raise ConfigError(f"rgb out of range for {entry.glyph!r}: {entry.rgb}")
        return self


def _overrides_from_module(module: Any) -> dict[str, Any]:
    """Pick up GOAL_MS-style constants matching InstallationConfig fields."""
    out: dict[str, Any] = {}
    for f in fields(InstallationConfig):
        key = f.name.upper()
        if hasattr(module, key):
            out[f.name] = getattr(module, key)
    return out


def load_config(module_name: Optional[str] = None) -> InstallationConfig:
    """
    Build the startup config.

    Defaults are overridden by upper-case constants of the module named by
    `module_name` or, when omitted, by the MOSAIC_CONFIG_MODULE environment
    variable. A module that is named but cannot be imported is fatal.
    """
    name = module_name or os.environ.get(CONFIG_MODULE_ENV)
    cfg = InstallationConfig()
    if name:
        try:
            module = import_module(name)
        except ImportError as exc:
            raise ImportError(
                f"Could not import config module {name!r}. "
                f"Check {CONFIG_MODULE_ENV} or the module path."
            ) from exc
        overrides = _overrides_from_module(module)
        if overrides:
            _LOG.info("Config overrides from %s: %s", name, sorted(overrides))
            cfg = replace(cfg, **overrides)
    return cfg.validate()
