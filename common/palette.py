"""Static glyph palettes used by the mosaic renderer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class GrayPaletteEntry:
    glyph: str
    gray: int  # representative luma, 0..255


@dataclass(frozen=True)
class ColorPaletteEntry:
    glyph: str
    rgb: Tuple[int, int, int]


# Ordered dark -> light; order matters for tie-breaking.
GRAYSCALE_PALETTE: Tuple[GrayPaletteEntry, ...] = (
    GrayPaletteEntry("⬛", 0),
    GrayPaletteEntry("◾", 55),
    GrayPaletteEntry("▪", 80),
    GrayPaletteEntry("●", 105),
    GrayPaletteEntry("◐", 130),
    GrayPaletteEntry("◑", 160),
    GrayPaletteEntry("○", 190),
    GrayPaletteEntry("▫", 215),
    GrayPaletteEntry("◽", 235),
    GrayPaletteEntry("◻", 245),
    GrayPaletteEntry("⬜", 255),
)

COLOR_PALETTE: Tuple[ColorPaletteEntry, ...] = (
    ColorPaletteEntry("⚫", (18, 18, 22)),
    ColorPaletteEntry("⚪", (235, 235, 240)),
    ColorPaletteEntry("🟤", (120, 85, 60)),
    ColorPaletteEntry("🔴", (220, 55, 50)),
    ColorPaletteEntry("🟠", (240, 140, 45)),
    ColorPaletteEntry("🟡", (245, 215, 65)),
    ColorPaletteEntry("🟢", (65, 195, 95)),
    ColorPaletteEntry("🔵", (60, 125, 235)),
    ColorPaletteEntry("🟣", (150, 85, 215)),
)
