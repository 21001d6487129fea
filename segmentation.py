"""
Column-projection segmentation of binarized captchas.

Characters are located from the ink occupancy of every column: each
contiguous run of inked columns is assumed to hold one character. Runs
that are too wide are split at their thinnest column, and two structural
edge cases are corrected afterwards so that exactly six glyphs come out:

- no usable structure (span count not 6/7, or a degenerate first span):
  six blank placeholders are returned instead;
- seven spans: the first character wrapped around the image edge, so the
  last and first slices are glued back together.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np

from method_result import MethodResult, MethodResultList
from preprocess import BACKGROUND, CANONICAL_FORMAT, INK, create_blank, image_format
from solver_config import CHARACTER_COUNT, SolverConfig

logger = logging.getLogger(__name__)

Span = Tuple[int, int]


def column_occupancy(binary):
    """True for every column holding at least one ink pixel."""
    return np.any(binary == INK, axis=0)


def column_ink_counts(binary):
    return np.count_nonzero(binary == INK, axis=0)


def find_boundaries(occupancy) -> List[int]:
    """
    Left and right edges of every run of inked columns.

    Columns outside the image count as empty, and a run one column wide
    contributes a single boundary.
    """
    ink = np.asarray(occupancy, dtype=bool)
    if ink.size == 0:
        return []

    left = np.concatenate(([False], ink[:-1]))
    right = np.concatenate((ink[1:], [False]))
    edges = ink & ~(left & right)
    return [int(x) for x in np.flatnonzero(edges)]


def pair_boundaries(boundaries: Sequence[int], width: int) -> List[Span]:
    """Pair consecutive boundaries into raw spans, ends clipped to the image."""
    coords = list(boundaries)
    if len(coords) % 2 != 0:
        # a run touching the image edge leaves one boundary unmatched
        coords.insert(1, coords[0])

    spans = []
    for i in range(0, len(coords), 2):
        start = coords[i]
        end = min(coords[i + 1] + 1, width - 1)
        spans.append((start, end))
    return spans


def split_oversized_span(span: Span, ink_counts, config: SolverConfig) -> List[Span]:
    """
    Split a span wider than `max_char_width` into two characters.

    The divider is the column with the fewest ink pixels inside
    [start + margin, end - margin), leftmost one on ties. The divider column
    itself belongs to neither half. When the margins leave nothing to
    search, the span is cut at its midpoint.
    """
    start, end = span
    if end - start <= config.max_char_width:
        return [span]

    lo, hi = start + config.split_margin, end - config.split_margin
    if hi > lo:
        divider = lo + int(np.argmin(ink_counts[lo:hi]))
    else:
        divider = start + (end - start) // 2

    logger.debug("Splitting span %s at column %d", span, divider)
    return [(start, divider), (divider + 1, end)]


def find_character_columns(binary, config: SolverConfig) -> MethodResult[List[Span]]:
    """Ordered (start, end) column ranges, one per presumed character."""
    try:
        width = binary.shape[1]
        occupancy = column_occupancy(binary)
        ink_counts = column_ink_counts(binary)

        boundaries = find_boundaries(occupancy)
        logger.debug("Boundaries: %s", boundaries)

        spans = []
        for span in pair_boundaries(boundaries, width):
            spans.extend(split_oversized_span(span, ink_counts, config))

        logger.debug("Character spans: %s", spans)
        return MethodResult.ok(spans)
    except Exception as e:
        return MethodResult.fail(str(e))


def merge_vertical(image1, image2) -> MethodResult:
    """
    Glue two vertical slices side by side (image1 left, image2 right).

    Both slices must be canonical single-channel images.
    """
    try:
        format1, format2 = image_format(image1), image_format(image2)
        if format1 != format2:
            return MethodResult.fail("The images must be of the same format.")
        if format1 != CANONICAL_FORMAT:
            return MethodResult.fail(f"The images must be in {CANONICAL_FORMAT} format.")

        h1, w1 = image1.shape
        h2, w2 = image2.shape
        merged = create_blank(w1 + w2, max(h1, h2), BACKGROUND)
        merged[:h1, :w1] = image1
        merged[:h2, w1:w1 + w2] = image2
        return MethodResult.ok(merged)
    except Exception as e:
        return MethodResult.fail(str(e))


def extract_character_images(binary, config: SolverConfig) -> MethodResultList:
    """
    Crop the six character slices out of a binarized captcha.

    Slices are owned copies; `binary` is left untouched.
    """
    try:
        columns_result = find_character_columns(binary, config)
        if not columns_result.success:
            return MethodResultList.fail("Unable to find character columns in the captcha image.",
                                         columns_result)

        spans = columns_result.get_result() or []
        if not spans:
            return MethodResultList.fail("Unable to find character columns in the captcha image.")

        char_images = [binary[:, start:end].copy() for start, end in spans]

        # --- No usable structure: blank placeholders ---
        degenerate_first = (len(char_images) == CHARACTER_COUNT
                            and char_images[0].shape[1] < config.min_char_width)
        if degenerate_first or len(char_images) not in (CHARACTER_COUNT, CHARACTER_COUNT + 1):
            logger.warning("Unusable layout (%d spans, first width %d), using blank placeholders",
                           len(char_images), char_images[0].shape[1])
            char_images = [create_blank(config.placeholder_width, config.placeholder_height)
                           for _ in range(CHARACTER_COUNT)]

        # --- First character wrapped around to the right edge ---
        if len(char_images) == CHARACTER_COUNT + 1:
            merge_result = merge_vertical(char_images[-1], char_images[0])
            if not merge_result.success:
                return MethodResultList.fail("Unable to merge the first and last characters.",
                                             merge_result)

            char_images[-1] = merge_result.get_result()
            del char_images[0]

        return MethodResultList.ok(char_images, total_count=len(spans))
    except Exception as e:
        return MethodResultList.fail(str(e))
