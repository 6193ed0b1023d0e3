from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

from common.palette import (
    COLOR_PALETTE,
    GRAYSCALE_PALETTE,
    ColorPaletteEntry,
    GrayPaletteEntry,
)


def luma(r: float, g: float, b: float) -> int:
    """Rec. 601 luma, rounded half up to an int in 0..255."""
    return int(math.floor(0.299 * r + 0.587 * g + 0.114 * b + 0.5))


def luma_array(rgb: np.ndarray) -> np.ndarray:
    """Vectorized :func:`luma` over an (..., 3) array."""
    arr = np.asarray(rgb, dtype=np.float64)
    y = 0.299 * arr[..., 0] + 0.587 * arr[..., 1] + 0.114 * arr[..., 2]
    return np.floor(y + 0.5).astype(np.int64)


class GlyphMapper:
    """
    Nearest-neighbour lookup from pixel values to palette glyphs.

    Both lookups scan the table in order and keep the first entry with the
    smallest distance, so ties go to the lowest index. The vectorized forms
    rely on ``np.argmin`` returning the first minimum, which gives the same
    result.
    """

    def __init__(
        self,
        grayscale_palette: Optional[Sequence[GrayPaletteEntry]] = None,
        color_palette: Optional[Sequence[ColorPaletteEntry]] = None,
    ) -> None:
        self._gray = tuple(grayscale_palette or GRAYSCALE_PALETTE)
        self._color = tuple(color_palette or COLOR_PALETTE)
        self._gray_levels = np.array([e.gray for e in self._gray], dtype=np.int64)
        self._color_rgb = np.array([e.rgb for e in self._color], dtype=np.int64)
        self._gray_glyphs = np.array([e.glyph for e in self._gray], dtype=object)
        self._color_glyphs = np.array([e.glyph for e in self._color], dtype=object)

    @property
    def grayscale_palette(self) -> tuple[GrayPaletteEntry, ...]:
        return self._gray

    @property
    def color_palette(self) -> tuple[ColorPaletteEntry, ...]:
        return self._color

    def nearest_grayscale_glyph(self, gray: int) -> str:
        best = self._gray[0].glyph
        smallest = None
        for entry in self._gray:
            d = abs(int(gray) - int(entry.gray))
            if smallest is None or d < smallest:
                smallest = d
                best = entry.glyph
        return best

    def nearest_color_glyph(self, r: int, g: int, b: int) -> str:
        best = self._color[0].glyph
        smallest = None
        for entry in self._color:
            cr, cg, cb = entry.rgb
            d = (int(r) - cr) ** 2 + (int(g) - cg) ** 2 + (int(b) - cb) ** 2
            if smallest is None or d < smallest:
                smallest = d
                best = entry.glyph
        return best

    # --- vectorized ----------------------------------------------------------

    def grayscale_indices(self, gray: np.ndarray) -> np.ndarray:
        g = np.asarray(gray, dtype=np.int64)
        dist = np.abs(g[..., None] - self._gray_levels)
        return np.argmin(dist, axis=-1)

    def color_indices(self, rgb: np.ndarray) -> np.ndarray:
        c = np.asarray(rgb, dtype=np.int64)[..., :3]
        dist = ((c[..., None, :] - self._color_rgb) ** 2).sum(axis=-1)
        return np.argmin(dist, axis=-1)

    def grayscale_glyphs(self, gray: np.ndarray) -> np.ndarray:
        return self._gray_glyphs[self.grayscale_indices(gray)]

    def color_glyphs(self, rgb: np.ndarray) -> np.ndarray:
        return self._color_glyphs[self.color_indices(rgb)]
