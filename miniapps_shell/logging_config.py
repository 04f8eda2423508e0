import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
NOISY_LOGGERS = ("urllib3", "requests", "watchdog", "PIL")


def resolve_level(raw_value, default=logging.INFO):
    level = logging.getLevelName(str(raw_value or "").strip().upper())
    return level if isinstance(level, int) else default


def configure_logging():
    """Configure shell logging once per process; Streamlit reruns call this on every interaction."""
    root = logging.getLogger()
    level = resolve_level(os.getenv("DASHBOARD_LOG_LEVEL", "INFO"))
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logging.getLogger("miniapps_shell")
