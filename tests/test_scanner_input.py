import cv2
import numpy as np
import pytest

from scanner_input import (
    PageImageError,
    binarize,
    ensure_color,
    load_image,
    preprocess_image,
    validate_page_image,
)


def test_ensure_color_replicates_grayscale():
    gray = np.full((20, 30), 100, dtype=np.uint8)
    color = ensure_color(gray)
    assert color.shape == (20, 30, 3)
    assert (color == 100).all()


def test_ensure_color_accepts_single_channel_axis():
    gray = np.full((20, 30, 1), 80, dtype=np.uint8)
    assert ensure_color(gray).shape == (20, 30, 3)


def test_ensure_color_drops_alpha():
    bgra = np.zeros((10, 10, 4), dtype=np.uint8)
    bgra[:, :, 3] = 255
    color = ensure_color(bgra)
    assert color.shape == (10, 10, 3)
    assert (color == 0).all()


def test_ensure_color_returns_copy():
    image = np.full((10, 10, 3), 200, dtype=np.uint8)
    color = ensure_color(image)
    color[:] = 0
    assert (image == 200).all()


@pytest.mark.parametrize(
    "image",
    [
        np.zeros((0, 10, 3), dtype=np.uint8),
        np.zeros((10, 0), dtype=np.uint8),
        np.zeros((10, 10, 2), dtype=np.uint8),
        np.zeros((10,), dtype=np.uint8),
        np.full((10, 10, 3), 65535, dtype=np.uint16),
        np.zeros((10, 10), dtype=np.float32),
        [[0, 0], [0, 0]],
    ],
)
def test_validate_rejects_malformed_images(image):
    with pytest.raises(PageImageError):
        validate_page_image(image)


def test_binarize_marks_ink_as_foreground():
    gray = np.full((60, 60), 255, dtype=np.uint8)
    gray[20:40, 20:40] = 0
    binary = binarize(gray)
    assert binary[30, 30] == 255
    assert binary[5, 5] == 0


def test_preprocess_does_not_mutate_input():
    image = np.full((40, 40, 3), 255, dtype=np.uint8)
    image[10:20, 10:20] = 0
    original = image.copy()
    color, gray, binary = preprocess_image(image)
    assert np.array_equal(image, original)
    assert gray.shape == (40, 40)
    assert binary.shape == (40, 40)
    assert color is not image


def test_load_image(tmp_path):
    path = tmp_path / "hoja.png"
    cv2.imwrite(str(path), np.full((12, 16, 3), 255, dtype=np.uint8))
    assert load_image(path).shape == (12, 16, 3)


def test_load_image_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_image(tmp_path / "no_existe.png")
