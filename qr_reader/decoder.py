# === FILE: qr_reader/decoder.py ===
"""
Чтение битового потока из матрицы модулей и разбор одного сегмента данных.

Коррекция ошибок и снятие маски не выполняются: данные читаются как есть.
"""
import logging
from typing import Iterator, List, Sequence, Tuple

from qr_reader.sampler import BitMatrix
from qr_reader.version_info import (ALPHANUMERIC_CHARSET, CHAR_COUNT_BITS, MODE_BYTE, MODE_NUMERIC,
                                    UNSUPPORTED_MODE, version_from_dimension)

logger = logging.getLogger(__name__)

TIMING_INDEX = 6


def bits_to_int(bits: Sequence[int]) -> int:
    value = 0
    for bit in bits:
        value = (value << 1) | (1 if bit else 0)
    return value


def is_reserved(x: int, y: int, size: int) -> bool:
    """Метки с разделителями и форматом (9x9 у трёх углов) и линии синхронизации"""
    if x < 9 and y < 9:
        return True
    if x < 9 and y >= size - 8:
        return True
    if x >= size - 8 and y < 9:
        return True
    return x == TIMING_INDEX or y == TIMING_INDEX


def data_positions(size: int) -> Iterator[Tuple[int, int]]:
    """
    Порядок обхода зигзагом: пары колонок справа налево,
    направление (вверх/вниз) меняется после каждой пары, колонка 6 пропускается.
    """
    col = size - 1
    upwards = True

    while col > 0:
        if col == TIMING_INDEX:
            col -= 1

        for count in range(size):
            row = size - 1 - count if upwards else count
            for x in (col, col - 1):
                if not is_reserved(x, row, size):
                    yield x, row

        col -= 2
        upwards = not upwards


def decode_byte(bits: Sequence[int], length: int) -> str:
    chars = []
    for i in range(length):
        start = i * 8
        if start + 8 > len(bits):
            break
        chars.append(bits_to_int(bits[start:start + 8]))
    return bytes(chars).decode('latin-1')


def decode_numeric(bits: Sequence[int], length: int) -> str:
    # группа i начинается с бита 3*i и занимает 3*c + (c - 1) бит
    result = []
    for i in range(0, length, 3):
        count = min(3, length - i)
        start = i * 3
        value = bits_to_int(bits[start:start + count * 3 + (count - 1)])
        result.append(str(value).zfill(count))
    return ''.join(result)


def _charset_at(index: int) -> str:
    return ALPHANUMERIC_CHARSET[index] if index < len(ALPHANUMERIC_CHARSET) else ''


def decode_alphanumeric(bits: Sequence[int], length: int) -> str:
    result = []
    for i in range(0, length, 2):
        start = i * 11 // 2
        if i + 1 < length:
            value = bits_to_int(bits[start:start + 11])
            result.append(_charset_at(value // 45) + _charset_at(value % 45))
        else:
            value = bits_to_int(bits[start:start + 6])
            result.append(_charset_at(value))
    return ''.join(result)


class QRDataDecoder:
    def decode(self, matrix: BitMatrix) -> str:
        """
        Возвращает декодированную строку, '' если данных нет,
        либо UNSUPPORTED_MODE для неизвестного индикатора режима.
        """
        version = self.read_version(matrix)
        format_info = self.read_format_info(matrix)
        bits = self.read_bits(matrix)
        logger.debug("matrix %d: version %d, format bits %s, %d data bits",
                     matrix.size, version, format(format_info, '06b'), len(bits))
        return self.decode_data(bits)

    def read_version(self, matrix: BitMatrix) -> int:
        return version_from_dimension(matrix.size)

    def read_format_info(self, matrix: BitMatrix) -> int:
        """Первые 6 бит формата из колонки 8 (только для диагностики)"""
        return bits_to_int([matrix.get(8, i) for i in range(6)])

    def read_bits(self, matrix: BitMatrix) -> List[int]:
        return [1 if matrix.get(x, y) else 0 for x, y in data_positions(matrix.size)]

    def decode_data(self, bits: Sequence[int]) -> str:
        if len(bits) < 8:
            return ''

        mode = bits_to_int(bits[:4])
        if mode not in CHAR_COUNT_BITS:
            logger.debug("unsupported mode indicator %s", format(mode, '04b'))
            return UNSUPPORTED_MODE

        count_end = 4 + CHAR_COUNT_BITS[mode]
        length = bits_to_int(bits[4:count_end])
        payload = bits[count_end:]

        if mode == MODE_BYTE:
            return decode_byte(payload, length)
        if mode == MODE_NUMERIC:
            return decode_numeric(payload, length)
        return decode_alphanumeric(payload, length)
