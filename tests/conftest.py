from typing import NamedTuple

import numpy as np
import pytest

from qr_reader.decoder import data_positions


class Symbol(NamedTuple):
    rgba: np.ndarray   # (h, w, 4)
    grid: np.ndarray   # модули, True = чёрный
    offset: int        # индекс модуля (0, 0) матрицы в grid
    size: int

    @property
    def width(self):
        return self.rgba.shape[1]

    @property
    def height(self):
        return self.rgba.shape[0]

    def expected_bits(self) -> np.ndarray:
        o = self.offset
        return self.grid[o:o + self.size, o:o + self.size]


def int_bits(value, width):
    return [(value >> (width - 1 - i)) & 1 for i in range(width)]


def byte_mode_bits(text):
    data = text.encode('latin-1')
    bits = int_bits(4, 4) + int_bits(len(data), 8)
    for b in data:
        bits += int_bits(b, 8)
    return bits


def paint_finder(grid, cx, cy):
    for dy in range(-3, 4):
        for dx in range(-3, 4):
            grid[cy + dy, cx + dx] = max(abs(dx), abs(dy)) != 2


def to_rgba(black_mask, dark=(0, 0, 0), light=(255, 255, 255)):
    h, w = black_mask.shape
    rgba = np.empty((h, w, 4), dtype=np.uint8)
    rgba[:, :] = tuple(light) + (255,)
    rgba[black_mask] = tuple(dark) + (255,)
    return rgba


def upscale(grid, module):
    return np.repeat(np.repeat(grid, module, axis=0), module, axis=1)


def render_symbol(bits, size=21, module=4, margin=4, dark=(0, 0, 0), light=(255, 255, 255)):
    """
    Синтетический символ в той же осевой сетке, что читает sample_modules:
    модуль (0, 0) матрицы совпадает с центром левой верхней метки.
    Метки рисуются поверх данных, поэтому поток должен быть коротким.
    """
    offset = 3 + margin
    n = size + 3 + 2 * margin
    grid = np.zeros((n, n), dtype=bool)

    for (x, y), bit in zip(data_positions(size), bits):
        grid[y + offset, x + offset] = bool(bit)
    for mx, my in ((0, 0), (size - 7, 0), (0, size - 7)):
        paint_finder(grid, mx + offset, my + offset)

    return Symbol(to_rgba(upscale(grid, module), dark, light), grid, offset, size)


def finder_mask(module=4, margin=4, right_margin=None):
    """Одна метка 7x7 с полями; right_margin=0 - метка упирается в правый край"""
    right = margin if right_margin is None else right_margin
    grid = np.zeros((7 + 2 * margin, 7 + margin + right), dtype=bool)
    paint_finder(grid, margin + 3, margin + 3)
    return upscale(grid, module)


@pytest.fixture
def qr_symbol():
    return render_symbol(byte_mode_bits("QR!"))
