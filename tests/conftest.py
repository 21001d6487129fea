"""
Shared builders for synthetic captchas.

A synthetic glyph is a block of horizontal bars; the bar count encodes the
character (1 bar -> 'a', 6 bars -> 'f'). `StripeClassifier` reads the bar
count back from the normalized glyph, so the whole pipeline can be checked
without a trained model.
"""

import cv2
import numpy as np
import pytest

from char_classifier import CharClassifier
from preprocess import BACKGROUND, INK

LABELS = "abcdef"
GLYPH_WIDTH = 20


def draw_bars(image, left, right, n_bars, top=4):
    """n_bars bars of 3 rows, 3 rows apart, across columns [left, right)."""
    for b in range(n_bars):
        y = top + 6 * b
        image[y:y + 3, left:right] = INK


def make_captcha(runs, width=160, height=40):
    """runs: list of (left, right_exclusive, n_bars)."""
    image = np.full((height, width), BACKGROUND, dtype=np.uint8)
    for left, right, n_bars in runs:
        draw_bars(image, left, right, n_bars)
    return image


def standard_runs():
    """Six well separated glyphs encoding 'abcdef'."""
    return [(5 + 25 * i, 5 + 25 * i + GLYPH_WIDTH, i + 1) for i in range(6)]


def wrapped_runs():
    """A first character cut in two: one half at each edge of the image."""
    runs = [(0, 8, 1)]
    runs += [(20 + 25 * i, 20 + 25 * i + GLYPH_WIDTH, i + 2) for i in range(5)]
    runs += [(150, 158, 1)]
    return runs


def png_bytes(image):
    ok, encoded = cv2.imencode('.png', image)
    assert ok
    return encoded.tobytes()


def count_bars(glyph):
    column = glyph[:, glyph.shape[1] // 2] < 128
    edges = np.diff(column.astype(np.int8))
    return int(np.count_nonzero(edges == 1)) + int(column[0])


class StripeClassifier(CharClassifier):
    def __init__(self):
        self.calls = 0

    def predict_all_labels(self, image_bytes):
        self.calls += 1
        glyph = cv2.imdecode(np.frombuffer(image_bytes, np.uint8), cv2.IMREAD_GRAYSCALE)
        bars = count_bars(glyph)
        return {label: (1.0 if i + 1 == bars else 0.0) for i, label in enumerate(LABELS)}


class ConstantClassifier(CharClassifier):
    def __init__(self, scores):
        self.scores = dict(scores)

    def predict_all_labels(self, image_bytes):
        return dict(self.scores)


class RaisingClassifier(CharClassifier):
    def predict_all_labels(self, image_bytes):
        raise RuntimeError("model exploded")


@pytest.fixture
def standard_captcha():
    return make_captcha(standard_runs())


@pytest.fixture
def wrapped_captcha():
    return make_captcha(wrapped_runs())


@pytest.fixture
def stripe_classifier():
    return StripeClassifier()
