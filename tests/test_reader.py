import cv2
import numpy as np
import pytest

from conftest import byte_mode_bits, int_bits, render_symbol, to_rgba
from qr_reader.binarizer import LuminanceImage
from qr_reader.errors import InsufficientPatternsError, QRNotFoundError, UndecodableSymbolError
from qr_reader.reader import QRCodeReader, candidate_thresholds, decode_attempt, load_image


def test_candidate_thresholds_policy():
    assert candidate_thresholds(120) == [120, 100, 140, 100, 127, 150]


def test_pipeline_at_natural_threshold(qr_symbol):
    image = LuminanceImage.from_array(qr_symbol.rgba)
    assert decode_attempt(image) == "QR!"
    assert image.threshold == image.default_threshold


def test_reader_first_attempt_wins(qr_symbol):
    image = LuminanceImage.from_array(qr_symbol.rgba)
    assert QRCodeReader().read(image) == "QR!"
    assert image.threshold == image.default_threshold


def test_read_pixels(qr_symbol):
    pixels = qr_symbol.rgba.tobytes()
    assert QRCodeReader().read_pixels(qr_symbol.width, qr_symbol.height, pixels) == "QR!"


@pytest.mark.parametrize("dark,light", [
    ((40, 40, 40), (200, 200, 200)),
    ((0, 0, 255), (255, 255, 0)),
])
def test_colored_symbol(dark, light):
    symbol = render_symbol(byte_mode_bits("Hi"), dark=dark, light=light)
    assert QRCodeReader().read_array(symbol.rgba) == "Hi"


def test_larger_modules():
    symbol = render_symbol(byte_mode_bits("ok"), module=7, margin=3)
    assert QRCodeReader().read_array(symbol.rgba) == "ok"


def test_alphanumeric_symbol():
    bits = int_bits(2, 4) + int_bits(3, 9) + int_bits(10 * 45 + 11, 11) + int_bits(12, 6)
    symbol = render_symbol(bits)
    assert QRCodeReader().read_array(symbol.rgba) == "ABC"


def test_blank_image_not_found():
    image = LuminanceImage.from_array(to_rgba(np.zeros((50, 50), dtype=bool)))
    with pytest.raises(InsufficientPatternsError):
        decode_attempt(image)
    with pytest.raises(QRNotFoundError):
        QRCodeReader().read(image)


def test_symbol_without_data_is_undecodable():
    symbol = render_symbol([])
    image = LuminanceImage.from_array(symbol.rgba)
    with pytest.raises(UndecodableSymbolError):
        decode_attempt(image)
    with pytest.raises(UndecodableSymbolError):
        QRCodeReader().read(image)
    # порог остаётся последним опробованным
    assert image.threshold == 150


def test_read_file(tmp_path, qr_symbol):
    path = str(tmp_path / "qr.png")
    assert cv2.imwrite(path, cv2.cvtColor(qr_symbol.rgba, cv2.COLOR_RGBA2BGR))

    buf = load_image(path)
    assert (buf.width, buf.height) == (qr_symbol.width, qr_symbol.height)
    assert len(buf.pixels) == buf.width * buf.height * 4
    assert QRCodeReader().read_file(path) == "QR!"


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_image(str(tmp_path / "nope.png"))


def test_unreadable_file(tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"not an image")
    with pytest.raises(FileNotFoundError):
        load_image(str(path))
