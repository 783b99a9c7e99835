"""
Application-wide logging initialization.

Call `initialize_logging()` once from the application factory before any
other logging is done. Module loggers are obtained with
`logging.getLogger(__name__)` and propagate to the root handler set up here.

Format:
    2026-10-19 12:00:00,000 INFO shortener_platform.manager.deleter: message
"""

import logging
import logging.config


def initialize_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {
                    "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
                }
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                    "stream": "ext://sys.stdout",
                }
            },
            "root": {
                "level": level.upper(),
                "handlers": ["stdout"],
            },
        }
    )
