from __future__ import annotations

import numpy as np

from common.palette import COLOR_PALETTE, GRAYSCALE_PALETTE, GrayPaletteEntry
from render.glyphs import GlyphMapper, luma, luma_array


def test_default_tables_have_expected_sizes():
    assert len(GRAYSCALE_PALETTE) == 11
    assert len(COLOR_PALETTE) == 9


def test_luma_rounds_to_int():
    assert luma(0, 0, 0) == 0
    assert luma(255, 255, 255) == 255
    assert luma(128, 128, 128) == 128
    assert luma(255, 0, 0) == 76  # 76.245
    assert luma(0, 255, 0) == 150  # 149.685


def test_nearest_grayscale_glyph_picks_closest_level():
    m = GlyphMapper()
    assert m.nearest_grayscale_glyph(128) == "◐"  # 130 is 2 away
    assert m.nearest_grayscale_glyph(128) == m.nearest_grayscale_glyph(128)
    assert m.nearest_grayscale_glyph(0) == "⬛"
    assert m.nearest_grayscale_glyph(255) == "⬜"
    assert m.nearest_grayscale_glyph(100) == "●"


def test_grayscale_ties_go_to_first_entry():
    m = GlyphMapper()
    # 240 is 5 from both 235 and 245.
    assert m.nearest_grayscale_glyph(240) == "◽"
    # 250 is 5 from both 245 and 255.
    assert m.nearest_grayscale_glyph(250) == "◻"

    custom = GlyphMapper(grayscale_palette=[GrayPaletteEntry("a", 10), GrayPaletteEntry("b", 20)])
    assert custom.nearest_grayscale_glyph(15) == "a"


def test_nearest_color_glyph_exact_and_approximate():
    m = GlyphMapper()
    assert m.nearest_color_glyph(18, 18, 22) == "⚫"
    assert m.nearest_color_glyph(0, 0, 0) == "⚫"
    assert m.nearest_color_glyph(255, 255, 255) == "⚪"
    assert m.nearest_color_glyph(230, 50, 40) == "🔴"
    assert m.nearest_color_glyph(50, 120, 250) == "🔵"


def test_vectorized_lookups_match_scalar_scans():
    m = GlyphMapper()
    rng = np.random.default_rng(3)
    rgb = rng.integers(0, 256, size=(9, 13, 3))
    # Include exact tie values for the grayscale table.
    gray = luma_array(rgb)
    gray[0, :4] = [240, 250, 0, 255]

    g_glyphs = m.grayscale_glyphs(gray)
    c_glyphs = m.color_glyphs(rgb)
    for y in range(rgb.shape[0]):
        for x in range(rgb.shape[1]):
            assert g_glyphs[y, x] == m.nearest_grayscale_glyph(int(gray[y, x]))
            r, g, b = (int(v) for v in rgb[y, x])
            assert c_glyphs[y, x] == m.nearest_color_glyph(r, g, b)
            assert luma_array(rgb[y, x]) == luma(r, g, b)
