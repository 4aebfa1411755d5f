import logging
import os
from logging.config import dictConfig

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
TELEMETRY_LOGGER = "ladderwork.telemetry"


def configure_logging() -> None:
    """Configure process-wide logging from LADDERWORK_* environment flags.

    ``TELEMETRY`` event lines go through their own logger, so
    ``LADDERWORK_TELEMETRY_LOG_LEVEL=WARNING`` silences them without hiding the
    rest of the service.
    """
    level = os.getenv("LADDERWORK_LOG_LEVEL", "INFO").upper()

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": DEFAULT_LOG_FORMAT,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": level,
            },
        }
    )

    telemetry_level = os.getenv("LADDERWORK_TELEMETRY_LOG_LEVEL", "INFO").upper()
    logging.getLogger(TELEMETRY_LOGGER).setLevel(telemetry_level)
    if os.getenv("LADDERWORK_DEBUG_SQL", "0") == "1":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
