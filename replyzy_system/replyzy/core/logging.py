import logging

from replyzy.core.config import settings


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(f"replyzy.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = logging.Formatter("[%(levelname)s] %(name)s: %(message)s")
        handler.setFormatter(fmt)
        logger.addHandler(handler)
        logger.setLevel(settings.LOG_LEVEL.upper())
    return logger


"""
Logging setup and it configures:
- Log format
- Log level (LOG_LEVEL setting)
- Output destination

The main purpose:
Standardized logging for planner, LLM router and services.
"""
