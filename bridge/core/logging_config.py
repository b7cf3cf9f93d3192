"""
Logging setup
Console output plus a rotating log file, configured from settings
"""
import logging
import os
from logging.handlers import RotatingFileHandler
from bridge.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging() -> logging.Logger:
    """
    Configure the `bridge` logger tree.
    Safe to call more than once; existing handlers are replaced.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logger = logging.getLogger("bridge")
    logger.setLevel(level)
    logger.propagate = False

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if settings.LOG_FILE:
        log_dir = os.path.dirname(settings.LOG_FILE)
        try:
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                settings.LOG_FILE,
                maxBytes=settings.LOG_MAX_SIZE,
                backupCount=settings.LOG_BACKUP_COUNT
            )
        except OSError as e:
            logger.warning("File logging disabled, cannot open %s: %s", settings.LOG_FILE, e)
        else:
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


def mask_token(token: str) -> str:
    """Mask a bearer token for logs: first 6 and last 4 characters"""
    if not token:
        return ""
    if len(token) <= 12:
        return "****"
    return f"{token[:6]}...{token[-4:]}"
