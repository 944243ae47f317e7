# === FILE: qr_reader/errors.py ===
"""
Ошибки конвейера декодирования.
"""


class QRDecodeError(Exception):
    """Базовая ошибка декодера"""


class QRNotFoundError(QRDecodeError):
    """QR-код на изображении не найден"""


class InsufficientPatternsError(QRNotFoundError):
    def __init__(self, found: int):
        super().__init__(f"Need 3 finder patterns, found {found}")
        self.found = found


class UndecodableSymbolError(QRDecodeError):
    """Метки найдены, но данные прочитать не удалось"""


class SamplingError(QRDecodeError):
    """Геометрия меток не даёт осмысленной сетки"""
