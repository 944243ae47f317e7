# === FILE: qr_reader/version_info.py ===
"""
Константы режимов данных и арифметика размеров QR (4k + 17)
"""
from qr_reader.detector import round_half_up

# Индикаторы режима (4 бита)
MODE_NUMERIC = 1
MODE_ALPHANUMERIC = 2
MODE_BYTE = 4

# Длина поля счётчика символов для версий 1-9
CHAR_COUNT_BITS = {
    MODE_NUMERIC: 10,
    MODE_ALPHANUMERIC: 9,
    MODE_BYTE: 8,
}

ALPHANUMERIC_CHARSET = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ $%*+-./:'

UNSUPPORTED_MODE = 'Unsupported QR mode'

MIN_DIMENSION = 21


def version_from_dimension(dimension: int) -> int:
    """Версия по размеру матрицы (без проверки допустимости)"""
    return (dimension - 17) // 4


def round_dimension(dimension: int) -> int:
    """Ближайшее значение вида 4k + 1"""
    if dimension % 4 == 1:
        return dimension
    return round_half_up(dimension / 4) * 4 + 1
