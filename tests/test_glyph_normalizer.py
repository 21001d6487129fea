import numpy as np
import pytest

from glyph_normalizer import ink_bounding_box, normalize_glyph, normalize_glyphs, trim_glyph
from preprocess import BACKGROUND, INK, create_blank


def small_glyph():
    glyph = create_blank(30, 40)
    glyph[10:20, 5:12] = INK
    glyph[12:14, 7:9] = BACKGROUND
    return glyph


def test_bounding_box_of_ink():
    assert ink_bounding_box(small_glyph()) == (5, 10, 12, 20)
    assert ink_bounding_box(create_blank(5, 5)) is None


def test_trim_to_ink():
    trimmed = trim_glyph(small_glyph())

    assert trimmed.shape == (10, 7)
    assert trimmed[0, 0] == INK


def test_trim_without_ink_returns_copy():
    blank = create_blank(5, 4)
    trimmed = trim_glyph(blank)

    assert trimmed.shape == (4, 5)
    assert trimmed is not blank


def test_normalize_stretches_to_square():
    glyph = normalize_glyph(small_glyph(), size=33)

    assert glyph.shape == (33, 33)
    assert set(np.unique(glyph).tolist()) == {INK, BACKGROUND}


def test_all_glyphs_share_dimensions():
    glyphs = normalize_glyphs([small_glyph(), create_blank(200, 700), create_blank(3, 3, INK)])

    assert [g.shape for g in glyphs] == [(33, 33)] * 3


def test_normalize_is_idempotent():
    once = normalize_glyph(small_glyph())
    twice = normalize_glyph(once)

    assert twice.shape == once.shape
    assert np.array_equal(once, twice)


def test_normalize_leaves_source_untouched():
    source = small_glyph()
    before = source.copy()

    normalize_glyph(source)

    assert np.array_equal(source, before)


def test_empty_glyph_is_rejected():
    with pytest.raises(ValueError):
        normalize_glyph(np.zeros((10, 0), dtype=np.uint8))
