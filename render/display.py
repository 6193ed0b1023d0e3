from __future__ import annotations

import shutil
import sys
import unicodedata
from typing import List, Optional, Protocol, TextIO, Tuple

from .hud import HUD_RESET
from .layout import MosaicLayout

Cell = Tuple[str, int]  # (glyph, fill 0..255)


class Display(Protocol):
    def surface_size(self) -> Tuple[int, int]: ...
    def blank(self) -> None: ...
    def begin_mosaic(self, layout: MosaicLayout) -> None: ...
    def draw_glyph(self, symbol: str, col: int, row: int, fill: int) -> None: ...
    def set_hud_text(self, text: str) -> None: ...
    def present(self) -> None: ...


class GridDisplay:
    """In-memory surface: keeps the last mosaic as a grid of (glyph, fill) cells.

    Used directly for headless runs and tests, and as the buffer behind
    :class:`TerminalDisplay`.
    """

    def __init__(self, width: int = 640, height: int = 480) -> None:
        self._size = (int(width), int(height))
        self.layout: Optional[MosaicLayout] = None
        self.cells: List[List[Optional[Cell]]] = []
        self.hud_text = HUD_RESET
        self.is_blank = True
        self.frames_presented = 0

    def surface_size(self) -> Tuple[int, int]:
        return self._size

    def resize(self, width: int, height: int) -> None:
        self._size = (int(width), int(height))

    def blank(self) -> None:
        self.layout = None
        self.cells = []
        self.is_blank = True

    def begin_mosaic(self, layout: MosaicLayout) -> None:
        self.layout = layout
        self.cells = [[None] * layout.cols for _ in range(layout.rows)]
        self.is_blank = False

    def draw_glyph(self, symbol: str, col: int, row: int, fill: int) -> None:
        self.cells[row][col] = (symbol, int(fill))

    def set_hud_text(self, text: str) -> None:
        self.hud_text = text

    def present(self) -> None:
        self.frames_presented += 1

    def glyph_rows(self) -> List[str]:
        return ["".join(c[0] if c else " " for c in row) for row in self.cells]


def cell_text(glyph: str) -> str:
    """`glyph` padded to exactly two terminal columns."""
    if glyph and unicodedata.east_asian_width(glyph[0]) in ("W", "F"):
        return glyph
    return f"{glyph[:1] or ' '} "


class TerminalDisplay(GridDisplay):
    """Paints the mosaic to a terminal with 24-bit ANSI colors.

    Each cell takes two terminal columns: wide glyphs fill them, narrow and
    ambiguous-width glyphs are padded with a space. The surface is sized so the
    grid fills the terminal with one line left for the HUD.
    """

    CSI = "\x1b["

    def __init__(self, cell_size: int, stream: Optional[TextIO] = None) -> None:
        self._cell_size = max(1, int(cell_size))
        self._stream = stream or sys.stdout
        super().__init__(*self._terminal_surface())

    def _terminal_surface(self) -> Tuple[int, int]:
        cols, lines = shutil.get_terminal_size(fallback=(80, 25))
        return (max(1, cols // 2) * self._cell_size, max(1, lines - 1) * self._cell_size)

    def surface_size(self) -> Tuple[int, int]:
        self.resize(*self._terminal_surface())
        return super().surface_size()

    def present(self) -> None:
        super().present()
        out = [f"{self.CSI}H"]
        for row in self.cells:
            for cell in row:
                if cell is None:
                    out.append("  ")
                    continue
                glyph, fill = cell
                out.append(f"{self.CSI}38;2;{fill};{fill};{fill}m{cell_text(glyph)}")
            out.append(f"{self.CSI}0m{self.CSI}K\n")
        out.append(f"{self.CSI}0m{self.CSI}J{self.hud_text}{self.CSI}K")
        self._stream.write("".join(out))
        self._stream.flush()

    def close(self) -> None:
        self._stream.write(f"{self.CSI}0m{self.CSI}2J{self.CSI}H")
        self._stream.flush()
