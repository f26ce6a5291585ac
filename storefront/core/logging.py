# storefront/core/logging.py
import logging.config

from storefront.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

def setup_logging(level: str | None = None) -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": "ext://sys.stderr",
                }
            },
            "loggers": {
                "storefront": {"handlers": ["console"], "level": (level or settings.LOG_LEVEL).upper(), "propagate": False},
            },
            "root": {"handlers": ["console"], "level": "WARNING"},
        }
    )
