"""
Logging configuration.
"""
import logging
from groupledger.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = None) -> None:
    """Configure the root logger once with a single stream handler."""
    level_name = (level or settings.LOG_LEVEL).upper()
    if settings.DEBUG:
        level_name = "DEBUG"
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
