# relaychat/core/logging.py
import logging

from relaychat.core.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = LOG_LEVEL) -> None:
    """
    Installs a stream handler on the root logger.
    Leaves logging alone when uvicorn (or a test runner) already configured it.
    """
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
