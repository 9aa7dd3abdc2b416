# salestrend/logging_config.py
import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single stdout handler to the package logger."""
    logger = logging.getLogger("salestrend")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Re-configuring (e.g. uvicorn --reload) must not duplicate output
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return logger
