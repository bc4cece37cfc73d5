"""Centralized logging configuration for Tempered Tuner.

This module provides a consistent way to configure logging across the package.
"""

import logging
import sys
from typing import Optional

# Log levels for different modules
MODULE_LOG_LEVELS = {
    # Core modules
    "tempered_tuner": logging.INFO,
    "tempered_tuner.cli": logging.INFO,
    "tempered_tuner.core": logging.INFO,
    # Signal path, per-frame messages are logged at DEBUG
    "tempered_tuner.audio": logging.INFO,
    "tempered_tuner.audio.pitch_estimator": logging.INFO,
    "tempered_tuner.music": logging.INFO,
    "tempered_tuner.services": logging.INFO,
    "tempered_tuner.presets": logging.INFO,
    "tempered_tuner.logger": logging.WARNING,  # Logger module itself should be quiet
    # Libraries/third-party
    "sounddevice": logging.ERROR,
    "soundfile": logging.ERROR,
    # Root logger
    "": logging.ERROR,
}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Shared console handler
_console_handler: Optional[logging.Handler] = None


def setup_logging(level: Optional[str] = None) -> None:
    """Set up logging configuration for the application.

    Args:
        level: If provided, override all 'tempered_tuner' log levels with this level (e.g., "DEBUG").
    """
    global _console_handler

    # Create a single, shared console handler if it doesn't exist
    if _console_handler is None:
        _console_handler = logging.StreamHandler(sys.stdout)
        _console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # Determine log levels
    log_levels = MODULE_LOG_LEVELS.copy()
    if level:
        numeric_level = logging.getLevelName(level.upper())
        if isinstance(numeric_level, int):
            for module_name in log_levels:
                if module_name.startswith("tempered_tuner"):
                    log_levels[module_name] = numeric_level
        else:
            logging.getLogger(__name__).error(f"Invalid log level: {level}")

    # Apply module-specific levels
    for module_name, module_level in log_levels.items():
        logger = logging.getLogger(module_name)
        logger.setLevel(module_level)

        # Only the top of each tree gets the handler, children propagate to it
        if module_name in ("", "tempered_tuner", "sounddevice", "soundfile"):
            for handler in logger.handlers[:]:
                logger.removeHandler(handler)
            logger.addHandler(_console_handler)
            logger.propagate = False

    logging.getLogger("tempered_tuner").debug("Logging configuration complete")
