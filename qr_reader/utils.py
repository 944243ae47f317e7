# === FILE: qr_reader/utils.py ===
"""
Набор вспомогательных функций для отладки.
"""
import logging
import os
from typing import Iterable, List, Optional, Tuple

import cv2
import numpy as np

from qr_reader.binarizer import LuminanceImage
from qr_reader.detector import FinderPattern
from qr_reader.sampler import BitMatrix
from qr_reader.settings import DEBUG_DIR, DEBUG_MODULE_PIXELS

logger = logging.getLogger(__name__)


def ensure_debug_dir(debug_dir: str = DEBUG_DIR) -> str:
    os.makedirs(debug_dir, exist_ok=True)
    return debug_dir


def draw_points(img, points: Iterable[Tuple[float, float]], color=(0, 0, 255), r=4):
    out = img.copy()
    for (x, y) in points:
        cv2.circle(out, (int(x), int(y)), r, color, -1)
    return out


def binarization_debug(image: LuminanceImage) -> np.ndarray:
    """Яркость и бинаризация при текущем пороге рядом"""
    h, w = image.height, image.width
    debug_img = np.zeros((h, w * 2), dtype=np.uint8)
    debug_img[:, :w] = image.luminance
    debug_img[:, w:] = np.where(image.binarize(), 0, 255).astype(np.uint8)
    return debug_img


def render_bit_matrix(matrix: BitMatrix, module_pixels: int = DEBUG_MODULE_PIXELS) -> np.ndarray:
    """Матрица модулей как изображение: 0 = чёрный, 255 = белый"""
    img = np.where(matrix.bits, 0, 255).astype(np.uint8)
    return np.kron(img, np.ones((module_pixels, module_pixels), dtype=np.uint8))


def save_debug_images(image: LuminanceImage, patterns: List[FinderPattern],
                      matrix: Optional[BitMatrix] = None, debug_dir: str = DEBUG_DIR) -> List[str]:
    """Сохраняет бинаризацию, найденные метки и (если есть) матрицу модулей"""
    ensure_debug_dir(debug_dir)
    saved = []

    path = os.path.join(debug_dir, f'debug_01_binary_t{image.threshold}.png')
    cv2.imwrite(path, binarization_debug(image))
    saved.append(path)

    gray = cv2.cvtColor(image.luminance, cv2.COLOR_GRAY2BGR)
    dbg = draw_points(gray, [(p.center.x, p.center.y) for p in patterns])
    for i, p in enumerate(patterns):
        cv2.putText(dbg, f"FP{i + 1}", (int(p.center.x) + 10, int(p.center.y)),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 0, 0), 1)
    path = os.path.join(debug_dir, 'debug_02_finder_patterns.png')
    cv2.imwrite(path, dbg)
    saved.append(path)

    if matrix is not None:
        path = os.path.join(debug_dir, 'debug_03_modules.png')
        cv2.imwrite(path, render_bit_matrix(matrix))
        saved.append(path)

    for p in saved:
        logger.debug("saved %s", p)
    return saved
