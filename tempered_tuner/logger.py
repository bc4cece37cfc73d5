"""Shared logger access for Tempered Tuner modules."""
import logging
import threading
from typing import Dict

PACKAGE_LOGGER = "tempered_tuner"

# Loggers may be first requested from a capture thread
_cache_lock = threading.Lock()
_logger_cache: Dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """
    Get the logger for a module, placed under the package logger tree.

    Names outside the package (e.g. '__main__' when a module is run as a
    script) are nested under 'tempered_tuner' so that
    :func:`tempered_tuner.logging_config.setup_logging` still controls them.

    Args:
        name: The full module name (e.g., 'tempered_tuner.music.note_mapper')

    Returns:
        A logger instance, shared across calls with the same name
    """
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"

    with _cache_lock:
        if name not in _logger_cache:
            _logger_cache[name] = logging.getLogger(name)
        return _logger_cache[name]
