import logging
import os

LOG_LEVEL = os.environ.get("LOG_LEVEL", "info")

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
}


def setup_logger(level: str = LOG_LEVEL) -> logging.Logger:
    """Configures the root logger with a single console handler.

    Args:
        level: Level name, one of debug, info, warning, error, critical.

    Returns:
        The configured root logger.
    """
    logger = logging.getLogger()

    logging_level = _LEVELS.get(level.lower(), logging.INFO)
    logging_format = "[{asctime}|{filename}:{funcName}:{lineno:d}]{levelname}  {message}"
    formatter = logging.Formatter(logging_format, style="{", datefmt="%H:%M:%S")

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    # Replace whatever handlers were there so repeated setup doesn't duplicate output
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.addHandler(console_handler)
    logger.setLevel(logging_level)

    return logger
