"""Application-wide logging configuration.

All modules log through the standard library. ``configure_logging`` is called
once when the API starts; library code only asks for named loggers.
"""

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure the root logger.

    Parameters:
        level (str): "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL".
            Unknown names fall back to INFO.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    logging.getLogger(__name__).info("Logging initialized with level %s", level)


def get_logger(name: str) -> logging.Logger:
    """
    Return a named logger.

    Usage:
        from financial_model_app.core.logging import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)
