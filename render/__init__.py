"""Glyph mosaic rendering: palette lookup, grid layout, HUD text and displays."""

from __future__ import annotations

from .display import Display, GridDisplay, TerminalDisplay
from .glyphs import GlyphMapper, luma, luma_array
from .hud import HUD_RESET, format_hud
from .layout import MosaicLayout
from .mosaic import MosaicRenderer, source_columns

__all__ = [
    "Display",
    "GridDisplay",
    "TerminalDisplay",
    "GlyphMapper",
    "luma",
    "luma_array",
    "HUD_RESET",
    "format_hud",
    "MosaicLayout",
    "MosaicRenderer",
    "source_columns",
]
