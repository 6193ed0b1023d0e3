from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class MosaicLayout:
    """Grid geometry of the mosaic on a surface of `width` x `height` pixels."""

    surface_width: int
    surface_height: int
    cell_size: int
    cols: int
    rows: int

    @classmethod
    def for_surface(
        cls, width: int, height: int, cell_size: int, min_grid: int = 12
    ) -> MosaicLayout:
        cell = max(1, int(cell_size))
        cols = max(int(min_grid), int(width) // cell)
        rows = max(int(min_grid), int(height) // cell)
        return cls(
            surface_width=int(width),
            surface_height=int(height),
            cell_size=cell,
            cols=cols,
            rows=rows,
        )

    @property
    def x_offset(self) -> float:
        # Negative when the min_grid floor makes the block wider than the surface.
        return (self.surface_width - self.cols * self.cell_size) * 0.5

    @property
    def y_offset(self) -> float:
        return (self.surface_height - self.rows * self.cell_size) * 0.5

    @property
    def font_size(self) -> int:
        return int(math.floor(self.cell_size * 1.15))

    def cell_origin(self, col: int, row: int) -> Tuple[float, float]:
        """Top-left surface position of grid cell (`col`, `row`)."""
        return (
            self.x_offset + col * self.cell_size,
            self.y_offset + row * self.cell_size,
        )
