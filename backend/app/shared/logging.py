import logging
import sys

from .config import settings

ROOT_LOGGER_NAME = "quotedesk"

# app.* modules log through getLogger(__name__); attach them under one root
logger = logging.getLogger(ROOT_LOGGER_NAME)
logger.setLevel(settings.LOG_LEVEL.upper())
logger.propagate = False

if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Child of the application logger, e.g. get_logger(__name__) -> quotedesk.app.locks.router"""
    return logger.getChild(name)
