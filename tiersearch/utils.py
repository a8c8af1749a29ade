import logging
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOGGER_NAMES = ("INDEX_BUILDER", "CODEC", "VSM", "RETRIEVAL", "SEARCH_CLI")


def get_logger(name: str, log_file: Path | None = None) -> logging.Logger:
    """
    Return a named logger with a console handler (INFO) and, when `log_file`
    is given, a DEBUG file handler writing to it.

    Calling this twice for the same name does not add handlers twice.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    if not any(getattr(h, "_tiersearch_console", False) for h in logger.handlers):
        ch = logging.StreamHandler()
        ch.setLevel(logging.INFO)
        ch.setFormatter(formatter)
        ch._tiersearch_console = True
        logger.addHandler(ch)

    if log_file:
        already = any(
            isinstance(h, logging.FileHandler)
            and os.path.abspath(h.baseFilename) == os.path.abspath(log_file)
            for h in logger.handlers
        )
        if not already:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(log_file)
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(formatter)
            logger.addHandler(fh)

    return logger


def configure_logging(level: int | str = logging.INFO, log_file: Path | None = None) -> None:
    """Set the level of every package logger and optionally log them all to one file."""
    for name in LOGGER_NAMES:
        get_logger(name, log_file).setLevel(level)
