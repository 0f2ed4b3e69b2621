# washdesk/utils/logger.py
"""
Logging setup shared by the API, the services and the scripts.
Console plus a rotating file (LOG_DIR / LOG_FILE, both from settings).
Lines carry a [Tag] prefix per area: [Order], [Convert], [Stock],
[Loyalty], [Notify], [Appointment].
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from washdesk.config import settings

LOG_LEVEL = settings.LOG_LEVEL.upper()
LOG_DIR = settings.LOG_DIR or os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Third-party loggers that would drown the fulfillment log at INFO
QUIET_LOGGERS = ("urllib3", "sqlalchemy.engine", "uvicorn.access")

_configured = False


def log_file_path() -> str:
    return os.path.join(LOG_DIR, settings.LOG_FILE)


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    os.makedirs(LOG_DIR, exist_ok=True)
    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console = logging.StreamHandler()
    console.setFormatter(fmt)

    file_handler = RotatingFileHandler(
        filename=log_file_path(),
        maxBytes=settings.LOG_MAX_MB * 1024 * 1024,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setFormatter(fmt)

    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)
    root.addHandler(console)
    root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root.level))


def get_logger(name: str) -> logging.Logger:
    """Named logger for a washdesk module; configures handlers on first use."""
    _configure_root_logger()
    return logging.getLogger(name)
