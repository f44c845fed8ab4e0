import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False

def setup_logging(level: str = settings.LOG_LEVEL, log_file: str = settings.LOG_FILE,
                  max_bytes: int = 10_000_000, backup_count: int = 5):
    """
    Configure the root logger once at startup.

    Always logs to stderr. When `log_file` is set, a rotating file handler
    is attached as well.
    """
    global _configured
    logger = logging.getLogger()
    logger.setLevel(level.upper())

    # Repeated startups in one process must not stack handlers
    if _configured:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        Path(log_file).parent.mkdir(exist_ok=True, parents=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    _configured = True
    return logger
