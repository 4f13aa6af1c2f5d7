"""
Logging setup
"""
import logging
from typing import Optional

from orm_i18n.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: Optional[str] = None):
    """
    Configure root logging once for the process.

    Args:
        level: Log level name, defaults to settings.LOG_LEVEL (DEBUG when settings.DEBUG)
    """
    if level is None:
        level = "DEBUG" if settings.DEBUG else settings.LOG_LEVEL
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)

    # SQL echo is noisy outside of debugging
    if not settings.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
