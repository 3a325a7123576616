# shopcart/utils/logging.py
import logging
import sys

from shopcart.utils.settings import LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _configure_root() -> logging.Logger:
    root = logging.getLogger("shopcart")
    if root.handlers:
        return root

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(LOG_LEVEL.upper())

    # mniej szumu z bibliotek
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    return root


def get_logger(name: str) -> logging.Logger:
    _configure_root()
    return logging.getLogger(name)
