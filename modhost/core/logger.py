from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

ROOT_LOGGER = "modhost"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(log_dir: str = "logs", level: str = "INFO") -> logging.Logger:
    """
    Configure the ``modhost`` logger tree: ``<log_dir>/modhost.log`` (rotating)
    plus a console handler. Calling it again only updates the level.
    """
    os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(str(level).upper())
    logger.propagate = False

    kinds = {type(h) for h in logger.handlers}
    if RotatingFileHandler not in kinds:
        fh = RotatingFileHandler(os.path.join(log_dir, "modhost.log"), maxBytes=1_000_000, backupCount=5, encoding="utf-8")
        fh.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(fh)
    if logging.StreamHandler not in kinds:
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(sh)

    return logger


def get_logger(area: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{area}")
