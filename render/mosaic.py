"""Glyph mosaic renderer.

Turns a frame already resized to the grid (`layout.cols` x `layout.rows`) into
one glyph per cell on a Display. Before the color unlock each cell is a
grayscale glyph filled with its own luma, so brightness shows both in the
glyph shape and in its fill; afterwards each cell is the nearest color glyph
filled white.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from capture.sampler import FrameUnavailable
from common.frame import Frame

from .display import Display
from .glyphs import GlyphMapper, luma_array
from .layout import MosaicLayout

WHITE = 255


def source_columns(cols: int, mirror: bool) -> np.ndarray:
    """Source column for each grid column; mirroring flips horizontally only."""
    idx = np.arange(cols)
    return idx[::-1].copy() if mirror else idx


class MosaicRenderer:
    def __init__(self, mapper: Optional[GlyphMapper] = None) -> None:
        self._mapper = mapper or GlyphMapper()

    @property
    def mapper(self) -> GlyphMapper:
        return self._mapper

    def render(
        self,
        display: Display,
        grid_frame: Frame,
        layout: MosaicLayout,
        color_unlocked: bool,
        mirror: bool = True,
    ) -> int:
        """Draw every cell of `layout` from `grid_frame`; returns the cell count.

        Raises FrameUnavailable when `grid_frame` does not hold exactly
        ``rows x cols`` RGB pixels. Nothing is drawn in that case, so the
        caller can blank the surface instead.
        """
        img = getattr(grid_frame, "img", None)
        expected = (layout.rows, layout.cols)
        if img is None or getattr(img, "ndim", 0) != 3 or img.shape[:2] != expected or img.shape[2] < 3:
            shape = getattr(img, "shape", None)
            raise FrameUnavailable(f"grid frame shape {shape} does not match layout {expected}")

        cells = np.asarray(img)[:, source_columns(layout.cols, mirror), :3]
        if color_unlocked:
            glyphs = self._mapper.color_glyphs(cells)
            fills = np.full(expected, WHITE, dtype=np.int64)
        else:
            fills = luma_array(cells)
            glyphs = self._mapper.grayscale_glyphs(fills)

        display.begin_mosaic(layout)
        for y in range(layout.rows):
            for x in range(layout.cols):
                display.draw_glyph(glyphs[y, x], x, y, int(fills[y, x]))
        return layout.rows * layout.cols
