import logging
import os
from datetime import datetime
from typing import Optional

SECURITY_LOGGER_NAME = "tourify.security"


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Set up a logger with detailed formatting.

    Args:
        name: Logger name (usually __name__)
        level: Optional logging level override

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Set level from environment or default to INFO
    log_level = (
        level or
        os.getenv('LOG_LEVEL', 'INFO')
    ).upper()
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    formatter = logging.Formatter(
        fmt=(
            '%(asctime)s | %(levelname)-8s | '
            '%(name)s:%(funcName)s:%(lineno)d | '
            '%(message)s'
        ),
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Add handlers if they haven't been added already
    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        # File output only when a log directory is configured
        log_dir = os.getenv('LOG_DIR')
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(
                os.path.join(
                    log_dir,
                    f"{datetime.now().strftime('%Y-%m-%d')}.log"
                )
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


def get_security_logger() -> logging.Logger:
    """Logger for security-relevant events such as ownership violations."""
    return setup_logger(SECURITY_LOGGER_NAME, level="WARNING")
