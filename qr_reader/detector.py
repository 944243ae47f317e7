# === FILE: qr_reader/detector.py ===
"""
Поиск трёх позиционных меток (finder patterns) по пробегам 1:1:3:1:1.
"""
import logging
import math
from typing import List, NamedTuple, Optional, Sequence

import numpy as np

from qr_reader.binarizer import LuminanceImage
from qr_reader.settings import CLUSTER_DISTANCE, MAX_PATTERNS, RATIO_TOLERANCE

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class Point(NamedTuple):
    x: float
    y: float

    def distance_to(self, other: 'Point') -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


class FinderPattern(NamedTuple):
    center: Point
    size: float  # ширина модуля в пикселях


class _RunState:
    """Пробеги текущей строки: чёрный, белый, чёрный x3, белый, чёрный"""
    __slots__ = ('runs', 'index')

    def __init__(self):
        self.runs = [0, 0, 0, 0, 0]
        self.index = 0

    def center_from_end(self, end: int) -> float:
        return end - self.runs[4] - self.runs[3] - self.runs[2] / 2

    def shift(self):
        # последние три пробега становятся первыми, текущий белый пиксель - в 4-й
        self.runs = [self.runs[2], self.runs[3], self.runs[4], 1, 0]
        self.index = 3


def check_ratio(runs: Sequence[int], tolerance: float = RATIO_TOLERANCE) -> bool:
    """Проверка пропорций 1:1:3:1:1 с допуском tolerance модуля на пробег"""
    total = sum(runs)
    if total < 7:
        return False

    module = total / 7
    max_variance = module * tolerance

    return (abs(module - runs[0]) < max_variance and
            abs(module - runs[1]) < max_variance and
            abs(3 * module - runs[2]) < 3 * max_variance and
            abs(module - runs[3]) < max_variance and
            abs(module - runs[4]) < max_variance)


def check_vertical(mask: np.ndarray, center_row: int, center_col: int) -> bool:
    """Подтверждение кандидата по вертикали через его центральный пиксель"""
    height = mask.shape[0]
    column = mask[:, center_col].tolist()
    runs = [0, 0, 0, 0, 0]

    # вверх: центр, белый, чёрный
    row = center_row
    while row >= 0 and column[row]:
        runs[2] += 1
        row -= 1
    if row < 0:
        return False
    while row >= 0 and not column[row]:
        runs[1] += 1
        row -= 1
    if row < 0:
        return False
    while row >= 0 and column[row]:
        runs[0] += 1
        row -= 1

    # вниз: продолжение центра, белый, чёрный
    row = center_row + 1
    while row < height and column[row]:
        runs[2] += 1
        row += 1
    if row >= height:
        return False
    while row < height and not column[row]:
        runs[3] += 1
        row += 1
    if row >= height:
        return False
    while row < height and column[row]:
        runs[4] += 1
        row += 1

    return check_ratio(runs)


def _try_candidate(mask: np.ndarray, state: _RunState, end: int, row: int) -> Optional[FinderPattern]:
    if not check_ratio(state.runs):
        return None
    center_x = state.center_from_end(end)
    if not check_vertical(mask, row, round_half_up(center_x)):
        return None
    return FinderPattern(Point(center_x, float(row)), sum(state.runs) / 7)


def scan_row(mask: np.ndarray, row: int) -> List[FinderPattern]:
    """Все кандидаты одной строки бинарной маски"""
    line = mask[row].tolist()
    state = _RunState()
    found = []

    for x, black in enumerate(line):
        if black:
            if state.index & 1:
                state.index += 1
            state.runs[state.index] += 1
        elif state.index & 1:
            state.runs[state.index] += 1
        elif state.runs[0] == 0:
            # белое поле до первого чёрного пробега
            continue
        elif state.index == 4:
            candidate = _try_candidate(mask, state, x, row)
            if candidate is not None:
                found.append(candidate)
            state.shift()
        else:
            state.index += 1
            state.runs[state.index] += 1

    # строка оборвалась на последнем чёрном пробеге
    if state.index == 4:
        candidate = _try_candidate(mask, state, len(line), row)
        if candidate is not None:
            found.append(candidate)

    return found


def cluster_patterns(candidates: Sequence[FinderPattern],
                     distance: float = CLUSTER_DISTANCE,
                     max_patterns: int = MAX_PATTERNS) -> List[FinderPattern]:
    """
    Группирует близкие кандидаты (относительно первого в группе),
    усредняет центры и размеры, сортирует по числу попаданий.
    """
    groups: List[List[FinderPattern]] = []
    for pattern in candidates:
        for group in groups:
            if pattern.center.distance_to(group[0].center) < distance:
                group.append(pattern)
                break
        else:
            groups.append([pattern])

    # сортировка стабильная: при равенстве раньше найденная группа первой
    groups.sort(key=len, reverse=True)

    averaged = []
    for group in groups[:max_patterns]:
        n = len(group)
        avg_x = sum(p.center.x for p in group) / n
        avg_y = sum(p.center.y for p in group) / n
        avg_size = sum(p.size for p in group) / n
        averaged.append(FinderPattern(Point(avg_x, avg_y), avg_size))
    return averaged


def find_finder_patterns(image: LuminanceImage) -> List[FinderPattern]:
    """Находит до трёх позиционных меток при текущем пороге изображения"""
    mask = image.binarize()

    candidates = []
    for row in range(image.height):
        candidates.extend(scan_row(mask, row))

    patterns = cluster_patterns(candidates)
    logger.debug("threshold %s: %d candidates, %d finder patterns",
                 image.threshold, len(candidates), len(patterns))
    for p in patterns:
        logger.debug("  pattern at (%.1f, %.1f), module %.2f", p.center.x, p.center.y, p.size)
    return patterns
