"""
Logger configuration.

Library modules only call logging.getLogger(__name__); handlers are
installed once by the entry point (the seed-kb CLI or the host app).
"""

import logging
import sys


NOISY_LOGGERS = ("httpx", "openai", "urllib3", "sentence_transformers")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with an ISO timestamp console format."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root_logger.addHandler(handler)

    # Reduce noise from verbose third-party libraries
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger (usually __name__)."""
    return logging.getLogger(name)
