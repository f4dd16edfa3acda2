import logging
import sys
from typing import Optional

from common.config import yaml_config

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def get_logger(name: Optional[str] = None, level: Optional[str] = None) -> logging.Logger:
    """
    Module logger writing to stdout. Level defaults to app.log_level so a
    single config switch turns on per-question state tracing (DEBUG).
    """
    logger = logging.getLogger(name or "kb")
    if logger.handlers:
        return logger
    logger.setLevel(level or yaml_config.app.log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
