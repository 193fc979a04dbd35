"""Logging configuration helpers."""

import logging

_LOGGER_NAME = "nutrition_diary"
_QUIET_LOGGERS = ("httpx", "httpcore", "openai")


def configure_logging(level: str = "INFO") -> None:
    """Configure application logging with a single stream handler."""
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level.upper())
    # Telegram request URLs embed the bot token.
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
