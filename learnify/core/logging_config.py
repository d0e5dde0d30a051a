"""
Logging Configuration
Sets up the 'learnify' logger namespace for the API process.
"""
import logging
import sys
from typing import Optional


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configures the logger for the 'learnify' namespace.

    Args:
        level: Level name (e.g. "DEBUG", "INFO")
        log_file: Optional path to also write logs to.
    """
    logger = logging.getLogger("learnify")
    logger.setLevel(level.upper())

    # uvicorn --reload imports the app again; avoid duplicate handlers
    if logger.hasHandlers():
        logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    logger.debug("Logging initialized.")
