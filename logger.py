# logger.py
"""
Logging configuration for the Badminton App.

This module provides centralized logging setup. The setup_logging() function
should be called once at application startup by whatever shell drives the
session engine.

All app modules should use the "app" namespace:
    import logging
    logger = logging.getLogger("app.module_name")

This keeps third-party library logs quiet while allowing granular control
over the app's own logging level via the LOG_LEVEL environment variable.
"""

import logging
import os
import sys

# App namespace prefix - all app loggers should use this
APP_LOGGER_NAME = "app"
LOG_LEVEL_ENV = "LOG_LEVEL"


def level_from_env(default: int = logging.INFO) -> int:
    """
    Reads the app log level from the LOG_LEVEL environment variable.

    Accepts level names ("DEBUG", "info") or numeric values. Unknown values
    fall back to the default.
    """
    raw = os.environ.get(LOG_LEVEL_ENV, "").strip()
    if not raw:
        return default
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else default


def setup_logging(app_level: int | None = None) -> None:
    """
    Configure logging for the application.

    - Root logger is set to WARNING (keeps third-party libraries quiet)
    - App namespace logger ("app.*") is set to the specified level

    This should be called ONCE at application startup (entry point).

    Args:
        app_level: The logging level for app modules (default: LOG_LEVEL or INFO)
    """
    if app_level is None:
        app_level = level_from_env()

    # Configure root logger to WARNING - silences third-party library noise
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)

    # Avoid adding duplicate handlers if setup is called multiple times
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.DEBUG)  # Handler accepts all; loggers filter

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)

        root_logger.addHandler(handler)

    # Configure the app namespace logger
    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(app_level)


def log_selection_debug(
    logger: logging.Logger,
    court_index: int,
    pool_size: int,
    candidates: list[str],
    chosen: tuple[str, ...],
    score: int | None,
    has_blacklisted_pair: bool = False,
) -> None:
    """
    Log optimizer selection details in a consistent format.

    Args:
        logger: Logger instance to use
        court_index: Court the selection is for
        pool_size: Number of eligible players before capping
        candidates: Capped candidate ids in enumeration order
        chosen: Selected player ids
        score: Objective value of the selected subset
        has_blacklisted_pair: Whether the best subset still holds a blacklisted pair
    """
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug("Court %s: %s eligible, candidates %s", court_index, pool_size, candidates)
    logger.debug("Court %s: chose %s (score %s)", court_index, list(chosen), score)
    if has_blacklisted_pair:
        logger.debug("Court %s: no blacklist-free subset available", court_index)
