"""
Logging for the negotiation client.

Console output always; a DEBUG-level file log when LOG_FILE is set.
Transport libraries (socketio, engineio, httpx) are capped at WARNING so
negotiation events stay readable.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from ..core.config import settings

DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
CONSOLE_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
FILE_FORMAT = '%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s'

# Chatty on every packet / request at INFO
TRANSPORT_LOGGERS = ("socketio.client", "engineio.client", "httpx", "httpcore")


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Install the client's handlers on the root logger.

    Args:
        level: Overrides settings.LOG_LEVEL
        log_file: Overrides settings.LOG_FILE ("" disables the file log)

    Returns:
        The configured root logger
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    target = settings.LOG_FILE if log_file is None else log_file

    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(console)

    if target:
        path = Path(target)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(file_handler)

    for name in TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(f"Negotiation client logging at {level_name} (file log: {target or 'off'})")
    return root


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass __name__."""
    return logging.getLogger(name)
