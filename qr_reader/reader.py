# === FILE: qr_reader/reader.py ===
"""
Полный конвейер: загрузка изображения, перебор порогов, поиск меток,
снятие матрицы и декодирование.
"""
import logging
import os
from typing import List, Optional

import cv2
import numpy as np

from qr_reader.binarizer import LuminanceImage, PixelBuffer
from qr_reader.decoder import QRDataDecoder
from qr_reader.detector import find_finder_patterns
from qr_reader.errors import InsufficientPatternsError, QRNotFoundError, SamplingError, UndecodableSymbolError
from qr_reader.sampler import sample_modules
from qr_reader.settings import FIXED_THRESHOLDS, MAX_PATTERNS, THRESHOLD_OFFSETS
from qr_reader.version_info import UNSUPPORTED_MODE

logger = logging.getLogger(__name__)


def load_image(path: str) -> PixelBuffer:
    """Читает файл через OpenCV и переводит BGR в RGBA"""
    if not os.path.exists(path):
        raise FileNotFoundError(path)

    img = cv2.imread(path, cv2.IMREAD_COLOR)
    if img is None:
        raise FileNotFoundError(f"Failed to open {path}")

    rgba = cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    h, w = rgba.shape[:2]
    return PixelBuffer(w, h, rgba.tobytes())


def candidate_thresholds(default: int) -> List[int]:
    """Otsu, Otsu±20, затем фиксированные значения"""
    return [default] + [default + offset for offset in THRESHOLD_OFFSETS] + list(FIXED_THRESHOLDS)


def decode_attempt(image: LuminanceImage, threshold: Optional[int] = None) -> str:
    """
    Один проход конвейера.

    InsufficientPatternsError - символ не найден,
    UndecodableSymbolError - метки есть, но данные не читаются.
    """
    if threshold is not None:
        image.set_threshold(threshold)

    patterns = find_finder_patterns(image)
    if len(patterns) < MAX_PATTERNS:
        raise InsufficientPatternsError(len(patterns))

    matrix = sample_modules(image, patterns)
    text = QRDataDecoder().decode(matrix)
    if not text or text == UNSUPPORTED_MODE:
        raise UndecodableSymbolError(f"Symbol {matrix.size}x{matrix.size} decoded to {text!r}")
    return text


class QRCodeReader:
    def read(self, image: LuminanceImage) -> str:
        """Перебирает пороги и возвращает первый успешный результат"""
        symbol_seen = False

        for threshold in candidate_thresholds(image.default_threshold):
            try:
                text = decode_attempt(image, threshold)
            except QRNotFoundError as e:
                logger.debug("threshold %d: %s", threshold, e)
                continue
            except (UndecodableSymbolError, SamplingError) as e:
                symbol_seen = True
                logger.debug("threshold %d: %s", threshold, e)
                continue

            logger.info("decoded at threshold %d", threshold)
            return text

        if symbol_seen:
            raise UndecodableSymbolError("QR code found but could not be decoded")
        raise QRNotFoundError("Could not find QR code in image")

    def read_pixels(self, width: int, height: int, pixels) -> str:
        return self.read(LuminanceImage(width, height, pixels))

    def read_array(self, rgba: np.ndarray) -> str:
        return self.read(LuminanceImage.from_array(rgba))

    def read_file(self, path: str) -> str:
        return self.read(LuminanceImage.from_pixel_buffer(load_image(path)))
