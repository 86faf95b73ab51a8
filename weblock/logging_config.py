# =======================================================================================
# weblock/logging_config.py - Logging Setup
# =======================================================================================
import logging
import sys

LOG_FORMAT = "%(asctime)s [%(name)s] [%(levelname)s] %(message)s"

_configured = False


def setup_logging(level: str = "INFO", debug: bool = False) -> None:
    """Attach a single console handler to the package logger."""
    global _configured
    logger = logging.getLogger("weblock")
    logger.setLevel(logging.DEBUG if debug else getattr(logging, level, logging.INFO))
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    _configured = True
