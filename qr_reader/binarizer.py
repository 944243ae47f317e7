# === FILE: qr_reader/binarizer.py ===
"""
Перевод RGBA-буфера в яркость и выбор глобального порога (Otsu).
"""
from typing import NamedTuple, Optional

import numpy as np

from qr_reader.settings import FALLBACK_THRESHOLD

# Веса яркости (ITU-R BT.601)
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


class PixelBuffer(NamedTuple):
    width: int
    height: int
    pixels: bytes  # RGBA, width * height * 4


def otsu_threshold(histogram: np.ndarray) -> int:
    """
    Порог Otsu по гистограмме из 256 корзин.

    Чёрный класс для порога t - все значения < t (как в is_black).
    Выбирается t с максимальной межклассовой дисперсией wB*wF*(mB-mF)^2,
    при равенстве остаётся наименьший t.
    """
    hist = np.asarray(histogram, dtype=np.float64)
    total = hist.sum()
    weighted_total = float(np.dot(np.arange(256), hist))

    w_b = 0.0
    sum_b = 0.0
    best_variance = 0.0
    threshold = FALLBACK_THRESHOLD

    for t in range(256):
        if t > 0:
            w_b += hist[t - 1]
            sum_b += (t - 1) * hist[t - 1]
        if w_b == 0:
            continue
        w_f = total - w_b
        if w_f == 0:
            break

        m_b = sum_b / w_b
        m_f = (weighted_total - sum_b) / w_f
        variance = (w_b / total) * (w_f / total) * (m_b - m_f) ** 2

        if variance > best_variance:
            best_variance = variance
            threshold = t

    return threshold


class LuminanceImage:
    """Карта яркости изображения с изменяемым порогом бинаризации"""

    def __init__(self, width: int, height: int, pixels):
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid image size: {width}x{height}")

        if isinstance(pixels, np.ndarray):
            rgba = pixels.astype(np.uint8).reshape(-1)
        else:
            rgba = np.frombuffer(bytes(pixels), dtype=np.uint8)
        expected = width * height * 4
        if rgba.size < expected:
            raise ValueError(f"Pixel buffer too short: {rgba.size} < {expected}")

        rgb = rgba[:expected].reshape(height, width, 4)[:, :, :3].astype(np.float64)
        # округление половины вверх
        self.luminance = np.floor(rgb @ LUMA_WEIGHTS + 0.5).clip(0, 255).astype(np.uint8)
        self.width = width
        self.height = height

        self._default_threshold = otsu_threshold(self.histogram())
        self._threshold = self._default_threshold

    @classmethod
    def from_pixel_buffer(cls, buf: PixelBuffer) -> 'LuminanceImage':
        return cls(buf.width, buf.height, buf.pixels)

    @classmethod
    def from_array(cls, rgba: np.ndarray) -> 'LuminanceImage':
        """Из массива (h, w, 4), например после cv2.cvtColor(..., COLOR_BGR2RGBA)"""
        if rgba.ndim != 3 or rgba.shape[2] != 4:
            raise ValueError(f"Expected (h, w, 4) RGBA array, got {rgba.shape}")
        h, w = rgba.shape[:2]
        return cls(w, h, np.ascontiguousarray(rgba))

    def histogram(self) -> np.ndarray:
        return np.bincount(self.luminance.ravel(), minlength=256)

    @property
    def default_threshold(self) -> int:
        return self._default_threshold

    @property
    def threshold(self) -> int:
        return self._threshold

    def set_threshold(self, value: int):
        self._threshold = value

    def get_pixel(self, x: int, y: int) -> int:
        if 0 <= x < self.width and 0 <= y < self.height:
            return int(self.luminance[y, x])
        return 255

    def is_black(self, x: int, y: int, threshold: Optional[int] = None) -> bool:
        if not (0 <= x < self.width and 0 <= y < self.height):
            return False
        t = self._threshold if threshold is None else threshold
        return int(self.luminance[y, x]) < t

    def binarize(self, threshold: Optional[int] = None) -> np.ndarray:
        """Маска чёрных пикселей (h, w) для текущего или явного порога"""
        t = self._threshold if threshold is None else threshold
        # порог может выходить за 0..255 (Otsu - 20) и быть дробным
        return self.luminance < np.float64(t)
