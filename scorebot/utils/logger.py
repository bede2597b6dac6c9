import logging
import sys
from datetime import datetime
from pathlib import Path

from scorebot.config import Config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _console_level() -> int:
    if Config.DEBUG:
        return logging.DEBUG
    level = logging.getLevelName(str(Config.LOG_LEVEL).upper())
    # getLevelName returns a "Level x" string for unknown names
    return level if isinstance(level, int) else logging.INFO


def setup_logger(name: str) -> logging.Logger:
    """Logger writing to stdout and to one scorebot log file per day.

    Calling it again for the same name returns the configured logger unchanged.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = _console_level()
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_dir = Path(Config.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(
        log_dir / f'scorebot_{datetime.now():%Y%m%d}.log',
        encoding='utf-8'
    )
    # The file keeps everything, the console only what LOG_LEVEL asks for
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger
