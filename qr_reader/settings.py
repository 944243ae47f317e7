# === FILE: qr_reader/settings.py ===
# Настройки декодера

# Поиск finder patterns
RATIO_TOLERANCE = 0.7          # допуск на отклонение пробега, в долях модуля
CLUSTER_DISTANCE = 20          # px, ближе - одна и та же метка
MAX_PATTERNS = 3

# Политика порогов для повторных попыток
THRESHOLD_OFFSETS = (-20, 20)  # относительно порога Otsu
FIXED_THRESHOLDS = (100, 127, 150)
FALLBACK_THRESHOLD = 127       # если Otsu не нашёл разбиения

# Отладка
DEBUG_DIR = "debug"
DEBUG_MODULE_PIXELS = 10

# Логи
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
