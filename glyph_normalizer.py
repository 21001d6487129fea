"""Trim character slices to their ink and stretch them to one square size."""

import cv2
import numpy as np


def ink_bounding_box(glyph, ink_cutoff=2):
    """(x0, y0, x1, y1) of the ink pixels, exclusive on the right/bottom, or None."""
    ys, xs = np.where(glyph < ink_cutoff)
    if len(xs) == 0:
        return None
    return int(xs.min()), int(ys.min()), int(xs.max()) + 1, int(ys.max()) + 1


def trim_glyph(glyph, ink_cutoff=2):
    """Crop away background padding. Glyphs without ink are returned as a copy."""
    box = ink_bounding_box(glyph, ink_cutoff)
    if box is None:
        return glyph.copy()
    x0, y0, x1, y1 = box
    return glyph[y0:y1, x0:x1].copy()


def normalize_glyph(glyph, size=33, ink_cutoff=2):
    """
    Trim, then stretch to `size` x `size` ignoring the aspect ratio.

    Nearest-neighbour keeps the glyph two-level, so a normalized glyph whose
    ink touches every edge comes back unchanged when normalized again.
    """
    if glyph.size == 0:
        raise ValueError("Cannot normalize an empty glyph.")

    trimmed = trim_glyph(glyph, ink_cutoff)
    if trimmed.shape[:2] == (size, size):
        return trimmed
    return cv2.resize(trimmed, (size, size), interpolation=cv2.INTER_NEAREST)


def normalize_glyphs(glyphs, size=33, ink_cutoff=2):
    return [normalize_glyph(g, size, ink_cutoff) for g in glyphs]
