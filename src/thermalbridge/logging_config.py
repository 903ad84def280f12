"""
Logging Configuration
Sets up the 'thermalbridge' logger for command line runs.

The console shows the chosen level. A log file, when requested, always records
DEBUG so the solver history of a run (sweep counts, skipped elements, rejected
regions) can be read back after a quiet console run.
"""
import logging
import sys
from typing import Optional, Union

from thermalbridge.exceptions import InvalidConfiguration

LOGGER_NAME = "thermalbridge"
LOG_LEVELS = ("debug", "info", "warning", "error")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    if level.lower() not in LOG_LEVELS:
        raise InvalidConfiguration(f"Unknown log level {level!r}, expected one of {', '.join(LOG_LEVELS)}.")
    return getattr(logging, level.upper())


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the 'thermalbridge' namespace logger.

    Args:
        level: Console level, as a logging constant or one of LOG_LEVELS.
        log_file: Optional path of a DEBUG-level log file, overwritten per run.

    Returns:
        The configured package logger.

    Raises:
        InvalidConfiguration: If ``level`` is an unknown level name.
    """
    console_level = _resolve_level(level)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file else console_level)
    # Repeated CLI invocations in one process must not stack handlers
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug(f"Logging initialized (console {logging.getLevelName(console_level)}, file {log_file or '-'}).")
    return logger
