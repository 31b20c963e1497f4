"""Logging configuration shared by the web app and scripts."""

from __future__ import annotations

import logging.config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
PACKAGE_LOGGER = __name__.rsplit(".", 2)[0]


def configure_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {"format": LOG_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                # records reach the console through the root handler
                PACKAGE_LOGGER: {"level": str(level).upper()},
            },
            "root": {"handlers": ["console"], "level": "WARNING"},
        }
    )
