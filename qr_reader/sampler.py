# === FILE: qr_reader/sampler.py ===
import logging
from typing import List, Sequence, Tuple

import numpy as np

from qr_reader.binarizer import LuminanceImage
from qr_reader.detector import FinderPattern, round_half_up
from qr_reader.errors import InsufficientPatternsError, SamplingError
from qr_reader.version_info import MIN_DIMENSION, round_dimension

logger = logging.getLogger(__name__)


class BitMatrix:
    """Квадратная матрица модулей, индексы (x, y); True = чёрный"""

    def __init__(self, size: int):
        self.size = size
        self.bits = np.zeros((size, size), dtype=bool)

    def get(self, x: int, y: int) -> bool:
        if 0 <= x < self.size and 0 <= y < self.size:
            return bool(self.bits[y, x])
        return False

    def set(self, x: int, y: int, value: bool):
        if 0 <= x < self.size and 0 <= y < self.size:
            self.bits[y, x] = value

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> 'BitMatrix':
        matrix = cls(len(rows))
        matrix.bits[:, :] = np.asarray(rows, dtype=bool)
        return matrix

    def __eq__(self, other):
        if not isinstance(other, BitMatrix):
            return NotImplemented
        return self.size == other.size and np.array_equal(self.bits, other.bits)

    def __repr__(self):
        return f"BitMatrix(size={self.size})"


def order_patterns(patterns: Sequence[FinderPattern]) -> Tuple[FinderPattern, FinderPattern, FinderPattern]:
    """
    Возвращает (TL, TR, BL) для неповёрнутого символа:
    верхний - TL, из оставшихся левый - BL, правый - TR.
    """
    by_y = sorted(patterns, key=lambda p: (p.center.y, p.center.x))
    top_left = by_y[0]
    bottom_left, top_right = sorted(by_y[1:3], key=lambda p: p.center.x)
    return top_left, top_right, bottom_left


def estimate_module_size(tl: FinderPattern, tr: FinderPattern, bl: FinderPattern) -> float:
    return (tl.size + tr.size + bl.size) / 3


def compute_dimension(tl: FinderPattern, tr: FinderPattern, bl: FinderPattern, module_size: float) -> int:
    if module_size <= 0:
        raise SamplingError(f"Invalid module size: {module_size}")

    tl_to_tr = tl.center.distance_to(tr.center)
    tl_to_bl = tl.center.distance_to(bl.center)
    avg_distance = (tl_to_tr + tl_to_bl) / 2

    dimension = round_dimension(round_half_up(avg_distance / module_size) + 7)
    if dimension < MIN_DIMENSION:
        logger.warning("grid %d is smaller than version 1 (%d)", dimension, MIN_DIMENSION)
    return dimension


def sample_modules(image: LuminanceImage, patterns: List[FinderPattern]) -> BitMatrix:
    """
    Снимает матрицу модулей по осевой сетке от центра левой верхней метки.
    Перспектива не учитывается.
    """
    if len(patterns) < 3:
        raise InsufficientPatternsError(len(patterns))

    tl, tr, bl = order_patterns(patterns[:3])
    module_size = estimate_module_size(tl, tr, bl)
    dimension = compute_dimension(tl, tr, bl, module_size)
    logger.debug("grid %dx%d, module %.2f px, origin (%.1f, %.1f)",
                 dimension, dimension, module_size, tl.center.x, tl.center.y)

    matrix = BitMatrix(dimension)
    for y in range(dimension):
        for x in range(dimension):
            px = tl.center.x + x * module_size
            py = tl.center.y + y * module_size

            if 0 <= px < image.width and 0 <= py < image.height:
                matrix.set(x, y, image.is_black(round_half_up(px), round_half_up(py)))

    return matrix
