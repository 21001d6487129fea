import cv2
import numpy as np
import pytest

from conftest import png_bytes
from preprocess import (
    BACKGROUND,
    CANONICAL_FORMAT,
    INK,
    binarize,
    create_blank,
    encode_png,
    image_format,
    load_binarized,
)


def gradient():
    return np.array([[0, 1, 2, 3, 128, 255]], dtype=np.uint8)


def test_binarize_uses_near_black_cutoff():
    binary = binarize(gradient(), ink_cutoff=2)

    assert binary.tolist() == [[INK, INK, BACKGROUND, BACKGROUND, BACKGROUND, BACKGROUND]]
    assert binary.dtype == np.uint8


def test_load_from_bytes():
    binary = load_binarized(png_bytes(gradient()))

    assert image_format(binary) == CANONICAL_FORMAT
    assert set(np.unique(binary).tolist()) == {INK, BACKGROUND}
    assert binary[0, 1] == INK and binary[0, 2] == BACKGROUND


def test_load_color_image_from_path(tmp_path):
    image = np.full((10, 12, 3), 255, dtype=np.uint8)
    image[2:5, 3:6] = 0
    path = tmp_path / "captcha.png"
    cv2.imwrite(str(path), image)

    binary = load_binarized(path)

    assert binary.shape == (10, 12)
    assert np.count_nonzero(binary == INK) == 9


def test_missing_path_is_fatal(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_binarized(tmp_path / "nope.png")


@pytest.mark.parametrize("data", [b"", b"definitely not an image"])
def test_undecodable_bytes_are_fatal(data):
    with pytest.raises(ValueError):
        load_binarized(data)


def test_unsupported_source():
    with pytest.raises(TypeError):
        load_binarized(42)


def test_image_format_tags():
    assert image_format(create_blank(4, 3)) == "GRAY8"
    assert image_format(np.zeros((3, 4, 3), dtype=np.uint8)) == "BGR8"
    assert image_format(np.zeros((3, 4, 4), dtype=np.uint8)) == "BGRA8"
    assert image_format(np.zeros((3, 4), dtype=np.float32)) == "2D-float32"


def test_encode_png_decodes_back():
    blank = create_blank(7, 5)
    decoded = cv2.imdecode(np.frombuffer(encode_png(blank), np.uint8), cv2.IMREAD_GRAYSCALE)

    assert np.array_equal(decoded, blank)
