"""
Logging Setup — console plus a rolling server log under LOG_DIR.
"""
import logging
import os
from logging.handlers import RotatingFileHandler

from motopay.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    os.makedirs(settings.LOG_DIR, exist_ok=True)

    root = logging.getLogger("motopay")
    root.setLevel(settings.LOG_LEVEL.upper())
    if root.handlers:
        return

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    file_handler = RotatingFileHandler(
        os.path.join(settings.LOG_DIR, "server.log"), maxBytes=5 * 1024 * 1024, backupCount=5,
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
