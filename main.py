# === FILE: main.py ===
import logging
import sys

import cv2

from qr_reader.binarizer import LuminanceImage
from qr_reader.detector import find_finder_patterns
from qr_reader.errors import QRDecodeError
from qr_reader.reader import QRCodeReader, decode_attempt, load_image
from qr_reader.sampler import sample_modules
from qr_reader.settings import LOG_FORMAT
from qr_reader.utils import save_debug_images


def run_image(path: str):
    """
    Декодирует QR-код встроенным детектором OpenCV. None, если не удалось.
    """
    img = cv2.imread(path)
    if img is None:
        print('Failed to open', path)
        return None

    detector = cv2.QRCodeDetector()
    data, bbox, _ = detector.detectAndDecode(img)

    if bbox is None:
        print('❌ OpenCV: no QR code detected')
        return None
    if not data:
        print('⚠️ OpenCV: QR code detected but failed to decode')
        return None
    return data


def run_image_custom(path: str, threshold=None, debug: bool = False):
    """
    Декодирует QR-код собственной реализацией из qr_reader/.
    """
    try:
        image = LuminanceImage.from_pixel_buffer(load_image(path))
    except FileNotFoundError as e:
        print('Failed to open', e)
        return None

    print(f"Image {image.width}x{image.height}, Otsu threshold {image.default_threshold}")

    text = None
    try:
        if threshold is None:
            text = QRCodeReader().read(image)
        else:
            text = decode_attempt(image, threshold)
    except QRDecodeError as e:
        print(f'❌ {e}')

    if debug:
        _save_debug(image)
    return text


def _save_debug(image: LuminanceImage):
    # порог изображения остаётся последним опробованным
    patterns = find_finder_patterns(image)
    try:
        matrix = sample_modules(image, patterns)
    except QRDecodeError:
        matrix = None
    for path in save_debug_images(image, patterns, matrix):
        print(f"  ✅ Сохранено: {path}")


def _usage():
    # python -m main images/qr_image.png --custom
    print('Usage: python -m main path/to/image [--custom] [--debug] [--verbose] [--threshold=N]')
    print('  --custom      : only the pure-Python decoder, skip OpenCV')
    print('  --debug       : write debug images to debug/')
    print('  --threshold=N : single attempt with a fixed threshold')
    sys.exit(1)


def _parse_threshold(argv):
    for arg in argv:
        if arg.startswith('--threshold='):
            value = arg.split('=', 1)[1]
            try:
                return int(value)
            except ValueError:
                print(f'Invalid threshold: {value!r}')
                _usage()
    return None


if __name__ == '__main__':
    if len(sys.argv) < 2 or sys.argv[1].startswith('-'):
        _usage()

    image_path = sys.argv[1]
    use_custom = '--custom' in sys.argv or '-c' in sys.argv
    threshold = _parse_threshold(sys.argv)
    if '--verbose' in sys.argv or '-v' in sys.argv:
        logging.basicConfig(level=logging.DEBUG, format=LOG_FORMAT)

    result = None
    if not use_custom:
        result = run_image(image_path)
    if result is None:
        result = run_image_custom(image_path, threshold, debug='--debug' in sys.argv)

    if result is None:
        sys.exit(2)
    print('✅ Decoded:', result)
