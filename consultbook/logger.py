import logging
import sys

from consultbook.settings import settings


logging_formatter = logging.Formatter("[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s")

_handler = logging.StreamHandler(sys.stdout)
_handler.setFormatter(logging_formatter)


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(settings.log_level)
    if _handler not in logger.handlers:
        logger.addHandler(_handler)
    return logger
