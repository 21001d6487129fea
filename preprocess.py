"""
Captcha decoding and binarization.

Everything downstream works on a single-channel uint8 array holding only
two values: INK (0) for character strokes and BACKGROUND (255).
"""

import logging
from pathlib import Path

import cv2
import numpy as np

logger = logging.getLogger(__name__)

INK = 0
BACKGROUND = 255
CANONICAL_FORMAT = "GRAY8"


def binarize(gray, ink_cutoff=2):
    """Hard threshold: values below `ink_cutoff` become INK, the rest BACKGROUND."""
    binary = np.full(gray.shape, BACKGROUND, dtype=np.uint8)
    binary[gray < ink_cutoff] = INK
    return binary


def load_binarized(source, ink_cutoff=2):
    """
    Decode a captcha (raw bytes or a file path) and binarize it.

    Raises FileNotFoundError for unreadable paths, ValueError for bytes
    OpenCV cannot decode and TypeError for any other source.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        buffer = np.frombuffer(bytes(source), dtype=np.uint8)
        if buffer.size == 0:
            raise ValueError("Captcha image bytes are empty.")
        gray = cv2.imdecode(buffer, cv2.IMREAD_GRAYSCALE)
        if gray is None:
            raise ValueError("Unable to decode the captcha image bytes.")
    elif isinstance(source, (str, Path)):
        gray = cv2.imread(str(source), cv2.IMREAD_GRAYSCALE)
        if gray is None:
            raise FileNotFoundError(f"Cannot read image: {source}")
    else:
        raise TypeError(f"Unsupported captcha source: {type(source).__name__}")

    binary = binarize(gray, ink_cutoff)
    logger.debug("Binarized captcha %dx%d, %d ink pixels",
                 binary.shape[1], binary.shape[0], int(np.count_nonzero(binary == INK)))
    return binary


def create_blank(width, height, value=BACKGROUND):
    """Uniform single-channel canvas."""
    return np.full((height, width), value, dtype=np.uint8)


def image_format(image):
    """Short tag describing the pixel encoding of `image`."""
    if image.dtype == np.uint8:
        if image.ndim == 2:
            return CANONICAL_FORMAT
        if image.ndim == 3 and image.shape[2] == 3:
            return "BGR8"
        if image.ndim == 3 and image.shape[2] == 4:
            return "BGRA8"
    return f"{image.ndim}D-{image.dtype}"


def encode_png(image):
    ok, encoded = cv2.imencode(".png", image)
    if not ok:
        raise ValueError("Unable to encode image as png.")
    return encoded.tobytes()
